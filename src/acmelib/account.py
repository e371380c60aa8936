"""Registered account with an ACME provider.

An :class:`Account` binds a contact realm, the account signing key
and the provider-side account resource.  It is immutable after
construction and can be shared between threads without locking;
every :meth:`Account.new_order` call is independent.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from acmelib.core.jws import make_jws_kid
from acmelib.core.types import PersistKind
from acmelib.models.api import ApiIdentifier, ApiOrder
from acmelib.models.certificate import Certificate
from acmelib.order import Order
from acmelib.persist import PersistKey
from acmelib.request import expect_header, read_json, retry_call

if TYPE_CHECKING:
    from collections.abc import Sequence

    from acmelib.core.jws import AcmeKey
    from acmelib.directory import Directory
    from acmelib.models.api import ApiAccount

log = logging.getLogger(__name__)


def _decode_text(value: bytes | None) -> str | None:
    if value is None:
        return None
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return None


class Account:
    """Account with an ACME provider.

    Accounts are created through :meth:`Directory.account` and consist
    of a contact realm and an EC P-256 key that signs every request.
    The account key type does not constrain the key algorithms of the
    certificates issued under it.

    Parameters
    ----------
    directory:
        The provider this account is registered with (shared).
    contact_email:
        Contact address; doubles as the persistence realm.
    acme_key:
        Account signing key.
    api_account:
        Account resource as returned at registration.
    account_url:
        Account resource URL, used as ``kid`` in signed requests.

    """

    __slots__ = ("_acme_key", "_account_url", "_api_account", "_contact_email", "_directory")

    def __init__(
        self,
        directory: Directory,
        contact_email: str,
        acme_key: AcmeKey,
        api_account: ApiAccount,
        account_url: str,
    ) -> None:
        self._directory = directory
        self._contact_email = contact_email
        self._acme_key = acme_key
        self._api_account = api_account
        self._account_url = account_url

    @property
    def directory(self) -> Directory:
        return self._directory

    @property
    def contact_email(self) -> str:
        return self._contact_email

    @property
    def acme_key(self) -> AcmeKey:
        return self._acme_key

    @property
    def api_account(self) -> ApiAccount:
        """Account resource as returned by the provider (for debugging)."""
        return self._api_account

    @property
    def account_url(self) -> str:
        return self._account_url

    def acme_private_key_pem(self) -> str:
        """Return the account private key as PKCS#8 PEM text."""
        return self._acme_key.to_pem().decode("ascii")

    def certificate(self, primary_name: str) -> Certificate | None:
        """Return an already issued and downloaded certificate.

        Reads the private key and certificate chain persisted under
        this account's realm for *primary_name*.  No network I/O is
        performed.

        Returns
        -------
        Certificate | None
            ``None`` unless both entries exist and decode as text.

        Raises
        ------
        PersistError
            If the backend fails to read either entry.

        """
        realm = self._contact_email
        persist = self._directory.persist

        pk_key = PersistKey(realm, PersistKind.PRIVATE_KEY, primary_name)
        log.debug("Read private key: %s", pk_key)
        private_key = _decode_text(persist.get(pk_key))

        crt_key = PersistKey(realm, PersistKind.CERTIFICATE, primary_name)
        log.debug("Read certificate: %s", crt_key)
        certificate = _decode_text(persist.get(crt_key))

        if private_key is None or certificate is None:
            return None
        return Certificate(private_key, certificate)

    def new_order(self, primary_name: str, alt_names: Sequence[str] = ()) -> Order:
        """Create a new order to issue a certificate for this account.

        *primary_name* is always the first identifier, followed by
        *alt_names* in the given order.  Every call creates a new order
        with the provider, even for identical names.

        Raises
        ------
        TypeError
            If *alt_names* is a single string instead of a sequence of names.
        ProtocolError
            If the response has no ``Location`` header or an invalid body.
        AcmeProblem
            If the provider rejects the order.

        """
        if isinstance(alt_names, str):
            msg = f"alt_names must be a sequence of names, not a string: {alt_names!r}"
            raise TypeError(msg)
        request = ApiOrder(
            identifiers=tuple(ApiIdentifier.dns(name) for name in (primary_name, *alt_names)),
        )
        payload = request.to_request()

        def build(nonce: str) -> tuple[str, bytes]:
            url = self._directory.api_directory.new_order
            log.debug("Call new order endpoint: %s", url)
            return url, make_jws_kid(url, nonce, self._acme_key, self._account_url, payload)

        response = retry_call(self._directory, build)
        order_url = expect_header(response, "Location")
        api_order = ApiOrder.from_dict(read_json(response))
        log.info("Created order %s for %d identifier(s)", order_url, len(request.identifiers))
        return Order(self, api_order, order_url)

    def __repr__(self) -> str:
        return f"Account(contact_email={self._contact_email!r}, url={self._account_url!r})"

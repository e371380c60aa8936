"""Provider directory: endpoint discovery, nonces, and account setup.

A :class:`Directory` is created once per provider and shared by every
:class:`~acmelib.account.Account` built from it.  It is never mutated
after construction, so it can be shared between threads freely.

Usage::

    persist = FilePersist("/var/lib/acmelib")
    directory = Directory.from_url(persist, DirectoryUrl.LETS_ENCRYPT_STAGING)
    account = directory.account("foo@bar.com")
    order = account.new_order("example.com", ["www.example.com"])
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from acmelib.account import Account
from acmelib.config.settings import LETS_ENCRYPT, LETS_ENCRYPT_STAGING
from acmelib.core.jws import AcmeKey, make_jws_jwk
from acmelib.core.types import PersistKind
from acmelib.logging.sanitize import sanitize_for_logs
from acmelib.models.api import ApiAccount, ApiDirectory
from acmelib.persist import FilePersist, MemoryPersist, Persist, PersistKey
from acmelib.request import DEFAULT_MAX_ATTEMPTS, check_response, expect_header, read_json, retry_call
from acmelib.transport import DEFAULT_USER_AGENT, Transport

if TYPE_CHECKING:
    from acmelib.config.settings import ClientSettings

log = logging.getLogger(__name__)

ACCOUNT_KEY_NAME = "acme_account"
"""Persistence name under which the account key is stored."""


class DirectoryUrl:
    """Well-known directory URLs."""

    LETS_ENCRYPT = LETS_ENCRYPT
    LETS_ENCRYPT_STAGING = LETS_ENCRYPT_STAGING


class Directory:
    """Entry point to one ACME provider.

    Parameters
    ----------
    persist:
        Storage for account keys and downloaded certificates.
    transport:
        HTTP transport used for every request.
    api_directory:
        Parsed directory document.
    max_attempts:
        Attempts per signed request before a ``badNonce`` rejection
        is surfaced to the caller.

    """

    def __init__(
        self,
        persist: Persist,
        transport: Transport,
        api_directory: ApiDirectory,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._persist = persist
        self._transport = transport
        self._api_directory = api_directory
        self._max_attempts = max_attempts

    @classmethod
    def from_url(
        cls,
        persist: Persist,
        url: str,
        *,
        transport: Transport | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> Directory:
        """Fetch the directory document at *url*.

        Raises
        ------
        TransportError
            If the provider cannot be reached.
        AcmeProblem
            If the provider answers with an error status.
        ProtocolError
            If the document is not JSON or lacks required endpoints.

        """
        transport = transport or Transport()
        log.debug("Fetching directory %s", url)
        response = check_response(transport.get(url))
        api_directory = ApiDirectory.from_dict(read_json(response))
        return cls(persist, transport, api_directory, max_attempts=max_attempts)

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        *,
        persist: Persist | None = None,
        transport: Transport | None = None,
    ) -> Directory:
        """Build a directory from loaded configuration."""
        if persist is None:
            persist = FilePersist(settings.storage_path) if settings.storage_path else MemoryPersist()
        if transport is None:
            transport = Transport(
                timeout=settings.timeout_seconds,
                user_agent=settings.user_agent or DEFAULT_USER_AGENT,
            )
        return cls.from_url(
            persist,
            settings.directory_url,
            transport=transport,
            max_attempts=settings.nonce_retry_attempts,
        )

    # -- collaborator accessors ---------------------------------------------

    @property
    def persist(self) -> Persist:
        return self._persist

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def api_directory(self) -> ApiDirectory:
        return self._api_directory

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def endpoints(self) -> ApiDirectory:
        """Return the provider's endpoint URLs."""
        return self._api_directory

    def new_nonce(self) -> str:
        """Fetch a fresh anti-replay nonce.

        Raises
        ------
        ProtocolError
            If the response carries no ``Replay-Nonce`` header.

        """
        response = check_response(self._transport.head(self._api_directory.new_nonce))
        return expect_header(response, "Replay-Nonce")

    # -- accounts -------------------------------------------------------------

    def account(self, contact_email: str) -> Account:
        """Access or register the account for *contact_email*.

        The contact email is also the persistence realm.  The account
        key is loaded from persistence, or generated and stored on
        first use.
        """
        return self.account_with_realm(contact_email, [f"mailto:{contact_email}"])

    def account_with_realm(self, realm: str, contact: list[str] | None = None) -> Account:
        """Access or register an account keyed by an arbitrary *realm*."""
        acme_key = self._load_or_create_key(realm)
        payload = {"termsOfServiceAgreed": True, "contact": list(contact or [])}

        def build(nonce: str) -> tuple[str, bytes]:
            url = self._api_directory.new_account
            log.debug("Call new account endpoint: %s", url)
            return url, make_jws_jwk(url, nonce, acme_key, payload)

        response = retry_call(self, build)
        account_url = expect_header(response, "Location")
        api_account = ApiAccount.from_dict(read_json(response))
        log.info("Using account %s for realm %s", account_url, realm)
        return Account(self, realm, acme_key, api_account, account_url)

    def _load_or_create_key(self, realm: str) -> AcmeKey:
        key = PersistKey(realm, PersistKind.ACCOUNT_PRIVATE_KEY, ACCOUNT_KEY_NAME)
        pem = self._persist.get(key)
        if pem is not None:
            log.debug("Read account key: %s", key)
            return AcmeKey.from_pem(pem)
        acme_key = AcmeKey.generate()
        self._persist.put(key, acme_key.to_pem())
        log.info("Created new account key %s: %s", key, sanitize_for_logs(acme_key.public_jwk()))
        return acme_key

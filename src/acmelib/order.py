"""Handle to a newly created provider-side order."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from acmelib.account import Account
    from acmelib.core.types import OrderStatus
    from acmelib.models.api import ApiIdentifier, ApiOrder


class Order:
    """An order bound to the account that created it.

    Holds the order URL and the order resource returned on creation.
    The account reference is kept for follow-up signed calls.
    """

    __slots__ = ("_account", "_api_order", "_url")

    def __init__(self, account: Account, api_order: ApiOrder, url: str) -> None:
        self._account = account
        self._api_order = api_order
        self._url = url

    @property
    def account(self) -> Account:
        return self._account

    @property
    def api_order(self) -> ApiOrder:
        return self._api_order

    @property
    def url(self) -> str:
        return self._url

    @property
    def status(self) -> OrderStatus | None:
        return self._api_order.status

    @property
    def authorization_urls(self) -> tuple[str, ...]:
        return self._api_order.authorizations

    @property
    def finalize_url(self) -> str | None:
        return self._api_order.finalize

    def identifiers(self) -> tuple[ApiIdentifier, ...]:
        return self._api_order.identifiers

    def __repr__(self) -> str:
        return f"Order(url={self._url!r}, status={self.status})"

"""Directory, account, and order resources as returned by the provider."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from acmelib.core.types import IdentifierType, OrderStatus
from acmelib.errors import ProtocolError


def _require_object(data: Any, what: str) -> dict[str, Any]:  # noqa: ANN401
    if not isinstance(data, dict):
        msg = f"{what} must be a JSON object, got {type(data).__name__}"
        raise ProtocolError(msg)
    return data


@dataclass(frozen=True)
class ApiDirectory:
    """Provider endpoint URLs (RFC 8555 §7.1.1)."""

    new_nonce: str
    new_account: str
    new_order: str
    revoke_cert: str | None = None
    key_change: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> ApiDirectory:  # noqa: ANN401
        d = _require_object(data, "Directory")
        missing = [k for k in ("newNonce", "newAccount", "newOrder") if not d.get(k)]
        if missing:
            msg = f"Directory is missing required field(s): {', '.join(missing)}"
            raise ProtocolError(msg)
        return cls(
            new_nonce=d["newNonce"],
            new_account=d["newAccount"],
            new_order=d["newOrder"],
            revoke_cert=d.get("revokeCert"),
            key_change=d.get("keyChange"),
            meta=d.get("meta") or {},
        )

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "newNonce": self.new_nonce,
            "newAccount": self.new_account,
            "newOrder": self.new_order,
        }
        if self.revoke_cert:
            body["revokeCert"] = self.revoke_cert
        if self.key_change:
            body["keyChange"] = self.key_change
        if self.meta:
            body["meta"] = self.meta
        return body


@dataclass(frozen=True)
class ApiIdentifier:
    """ACME identifier value object."""

    type: IdentifierType
    value: str

    @classmethod
    def dns(cls, value: str) -> ApiIdentifier:
        return cls(IdentifierType.DNS, value)

    @classmethod
    def from_dict(cls, data: Any) -> ApiIdentifier:  # noqa: ANN401
        d = _require_object(data, "Identifier")
        try:
            return cls(IdentifierType(d["type"]), str(d["value"]))
        except (KeyError, ValueError) as exc:
            msg = f"Invalid identifier {d!r}: {exc}"
            raise ProtocolError(msg) from exc

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type.value, "value": self.value}


@dataclass(frozen=True)
class ApiAccount:
    """Registered account resource (RFC 8555 §7.1.2)."""

    status: str = "valid"
    contact: tuple[str, ...] = ()
    terms_of_service_agreed: bool = False
    orders: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> ApiAccount:  # noqa: ANN401
        d = _require_object(data, "Account")
        return cls(
            status=d.get("status", "valid"),
            contact=tuple(d.get("contact") or ()),
            terms_of_service_agreed=bool(d.get("termsOfServiceAgreed", False)),
            orders=d.get("orders"),
        )


@dataclass(frozen=True)
class ApiOrder:
    """Order resource (RFC 8555 §7.1.3).

    Only ``identifiers`` is sent on creation; every other field is
    filled in by the provider's response.
    """

    identifiers: tuple[ApiIdentifier, ...]
    status: OrderStatus | None = None
    expires: str | None = None
    not_before: str | None = None
    not_after: str | None = None
    error: dict[str, Any] | None = None
    authorizations: tuple[str, ...] = ()
    finalize: str | None = None
    certificate: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> ApiOrder:  # noqa: ANN401
        d = _require_object(data, "Order")
        status = d.get("status")
        try:
            status = OrderStatus(status) if status is not None else None
        except ValueError as exc:
            msg = f"Unknown order status {status!r}"
            raise ProtocolError(msg) from exc
        return cls(
            identifiers=tuple(ApiIdentifier.from_dict(i) for i in d.get("identifiers") or ()),
            status=status,
            expires=d.get("expires"),
            not_before=d.get("notBefore"),
            not_after=d.get("notAfter"),
            error=d.get("error"),
            authorizations=tuple(d.get("authorizations") or ()),
            finalize=d.get("finalize"),
            certificate=d.get("certificate"),
        )

    def to_request(self) -> dict[str, Any]:
        """Serialise the order-creation payload."""
        return {"identifiers": [i.to_dict() for i in self.identifiers]}

"""Client-side error taxonomy and RFC 8555 ACME error types.

Every failure surfaced by :mod:`acmelib` derives from :class:`AcmeError`.
Provider rejections are decoded from their RFC 7807 problem document
into :class:`AcmeProblem`; only the ``badNonce`` class is recovered
locally (see :func:`acmelib.request.retry_call`).

Usage::

    try:
        order = account.new_order("example.com")
    except AcmeProblem as exc:
        print(exc.error_type, exc.detail)
"""

from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# RFC 8555 §6.7 -- ACME error-type URNs
# ---------------------------------------------------------------------------
_P = "urn:ietf:params:acme:error:"

ACCOUNT_DOES_NOT_EXIST = _P + "accountDoesNotExist"
BAD_CSR = _P + "badCSR"
BAD_NONCE = _P + "badNonce"
BAD_PUBLIC_KEY = _P + "badPublicKey"
BAD_SIGNATURE_ALGORITHM = _P + "badSignatureAlgorithm"
MALFORMED = _P + "malformed"
RATE_LIMITED = _P + "rateLimited"
REJECTED_IDENTIFIER = _P + "rejectedIdentifier"
SERVER_INTERNAL = _P + "serverInternal"
UNAUTHORIZED = _P + "unauthorized"
UNSUPPORTED_IDENTIFIER = _P + "unsupportedIdentifier"

PROBLEM_CONTENT_TYPE = "application/problem+json"


class AcmeError(Exception):
    """Base class for every error raised by the client.

    Parameters
    ----------
    detail:
        Human-readable description of the failure.
    retryable:
        Whether the failure is transient and the caller may try again.

    """

    def __init__(self, detail: str, *, retryable: bool = False) -> None:
        self.detail = detail
        self.retryable = retryable
        super().__init__(detail)


class TransportError(AcmeError):
    """The HTTP request could not be completed (DNS, connect, timeout)."""


class ProtocolError(AcmeError):
    """The provider response violates the protocol.

    Raised for missing required headers (``Location``, ``Replay-Nonce``),
    missing directory fields, and undecodable JSON bodies.
    """


class SigningError(AcmeError):
    """The account key could not be loaded or could not sign."""


class PersistError(AcmeError):
    """The persistence backend failed to read or write an entry."""


class AcmeProblem(AcmeError):
    """An RFC 7807 problem document returned by the provider.

    Parameters
    ----------
    error_type:
        A URN string (one of the constants above) or ``"about:blank"``
        when the provider sent no problem document.
    detail:
        Human-readable explanation from the provider.
    status:
        HTTP status code of the response.
    subproblems:
        Optional list of sub-problem dicts (RFC 8555 §6.7.1).

    """

    def __init__(
        self,
        error_type: str,
        detail: str,
        status: int,
        *,
        subproblems: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(detail, retryable=error_type in (BAD_NONCE, RATE_LIMITED))
        self.error_type = error_type
        self.status = status
        self.subproblems = subproblems or []

    @property
    def is_bad_nonce(self) -> bool:
        """Return ``True`` when the provider rejected the anti-replay nonce."""
        return self.error_type == BAD_NONCE

    @classmethod
    def from_dict(cls, data: Any, status: int) -> AcmeProblem:  # noqa: ANN401
        """Build a problem from a decoded response body.

        Bodies that are not JSON objects still produce a problem so a
        non-success response never goes unreported.
        """
        if not isinstance(data, dict):
            return cls("about:blank", f"HTTP {status}", status)
        return cls(
            str(data.get("type") or "about:blank"),
            str(data.get("detail") or f"HTTP {status}"),
            status,
            subproblems=data.get("subproblems"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise back to the RFC 7807 JSON structure."""
        body: dict[str, Any] = {
            "type": self.error_type,
            "detail": self.detail,
            "status": self.status,
        }
        if self.subproblems:
            body["subproblems"] = self.subproblems
        return body

    def __str__(self) -> str:
        return f"{self.error_type} ({self.status}): {self.detail}"

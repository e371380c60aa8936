"""Signed request executor with bounded ``badNonce`` recovery.

Every state-changing call to the provider goes through
:func:`retry_call`.  The caller supplies a *build* strategy that turns
a fresh nonce into ``(url, envelope)``; the executor owns nonce
acquisition, sending, error classification and the retry bound.

Retry policy:
    Only a problem document of type ``badNonce`` is retried, up to
    ``max_attempts`` attempts in total.  Transport failures, other
    problem types and :class:`~acmelib.errors.SigningError` raised by
    *build* propagate immediately.  Each attempt consumes exactly one
    freshly fetched nonce.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from acmelib.errors import AcmeProblem, ProtocolError

if TYPE_CHECKING:
    from acmelib.directory import Directory
    from acmelib.transport import HttpResponse

log = logging.getLogger(__name__)

JOSE_CONTENT_TYPE = "application/jose+json"

DEFAULT_MAX_ATTEMPTS = 3

RequestBuilder = Callable[[str], tuple[str, bytes]]
"""Strategy: nonce -> (target URL, signed envelope bytes)."""


def check_response(response: HttpResponse) -> HttpResponse:
    """Return *response* unchanged, or raise its problem document.

    Raises
    ------
    AcmeProblem
        For any non-2xx status.  Bodies that are not valid JSON
        still raise, with ``error_type`` ``about:blank``.

    """
    if response.ok:
        return response
    try:
        data: Any = response.json()
    except ProtocolError:
        data = None
    raise AcmeProblem.from_dict(data, response.status)


def retry_call(
    directory: Directory,
    build: RequestBuilder,
    *,
    max_attempts: int | None = None,
) -> HttpResponse:
    """POST a signed envelope, retrying when the nonce was rejected.

    Parameters
    ----------
    directory:
        Source of fresh nonces and of the transport.
    build:
        Called once per attempt with a new nonce.
    max_attempts:
        Total attempts (first try included).  Defaults to the
        directory's configured value.

    Returns
    -------
    HttpResponse
        The first successful (2xx) response.

    Raises
    ------
    AcmeProblem
        The provider rejected the request, or every attempt failed
        with ``badNonce`` (the last such problem is raised).

    """
    attempts = max_attempts if max_attempts is not None else directory.max_attempts
    if attempts < 1:
        msg = f"max_attempts must be at least 1, got {attempts}"
        raise ValueError(msg)

    for attempt in range(1, attempts + 1):
        nonce = directory.new_nonce()
        url, body = build(nonce)
        log.debug("POST %s (attempt %d/%d)", url, attempt, attempts)
        response = directory.transport.post(url, body, JOSE_CONTENT_TYPE)
        try:
            return check_response(response)
        except AcmeProblem as problem:
            if not problem.is_bad_nonce or attempt == attempts:
                raise
            log.info(
                "Provider rejected nonce for %s, retrying (attempt %d/%d)",
                url,
                attempt,
                attempts,
            )
    # unreachable: the loop either returns or raises
    msg = "retry loop exited without a result"
    raise AssertionError(msg)


def expect_header(response: HttpResponse, name: str) -> str:
    """Return header *name* or raise :class:`ProtocolError`."""
    value = response.header(name)
    if not value:
        msg = f"Response is missing required header '{name}'"
        raise ProtocolError(msg)
    return value


def read_json(response: HttpResponse) -> Any:  # noqa: ANN401
    """Decode the JSON body of a successful response."""
    return response.json()

"""Blocking HTTP transport for talking to the provider.

Built on :mod:`urllib.request`.  Every HTTP status comes back as an
:class:`HttpResponse`; only failures to get a response at all raise
:class:`~acmelib.errors.TransportError`.  Timeouts are enforced here,
the client itself has no cancellation primitive.
"""

from __future__ import annotations

import contextlib
import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any

from acmelib import __version__
from acmelib.errors import ProtocolError, TransportError

log = logging.getLogger(__name__)

DEFAULT_USER_AGENT = f"acmelib/{__version__}"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class HttpResponse:
    """Status, headers and body of a completed HTTP exchange."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300  # noqa: PLR2004

    def header(self, name: str) -> str | None:
        """Return the value of header *name*, matched case-insensitively."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    def json(self) -> Any:  # noqa: ANN401
        """Decode the body as JSON.

        Raises
        ------
        ProtocolError
            If the body is not valid UTF-8 JSON.

        """
        try:
            return json.loads(self.body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            msg = f"Response body is not valid JSON: {exc}"
            raise ProtocolError(msg) from exc


class Transport:
    """Minimal HTTP client used by :class:`~acmelib.directory.Directory`.

    Parameters
    ----------
    timeout:
        Per-request socket timeout in seconds.
    user_agent:
        Value of the ``User-Agent`` header (RFC 8555 §6.1 asks
        clients to send one).

    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._timeout = timeout
        self._user_agent = user_agent

    def get(self, url: str) -> HttpResponse:
        return self._request("GET", url)

    def head(self, url: str) -> HttpResponse:
        return self._request("HEAD", url)

    def post(self, url: str, body: bytes, content_type: str) -> HttpResponse:
        return self._request("POST", url, body, {"Content-Type": content_type})

    def _request(
        self,
        method: str,
        url: str,
        data: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse:
        req = urllib.request.Request(
            url,
            data=data,
            method=method,
            headers={"User-Agent": self._user_agent, **(headers or {})},
        )
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:  # noqa: S310
                return HttpResponse(resp.status, dict(resp.headers.items()), resp.read())
        except urllib.error.HTTPError as exc:
            body = b""
            with contextlib.suppress(OSError):
                body = exc.read()
            log.debug("%s %s returned HTTP %d", method, url, exc.code)
            return HttpResponse(exc.code, dict(exc.headers.items()) if exc.headers else {}, body)
        except (urllib.error.URLError, OSError) as exc:
            msg = f"{method} {url} failed: {exc}"
            raise TransportError(msg, retryable=True) from exc

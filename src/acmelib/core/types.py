"""Enumerated types for the ACME client.

All enums inherit from ``StrEnum`` so their ``.value`` is a plain
string that JSON round-trips naturally.
"""

from __future__ import annotations

from enum import StrEnum

# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


class IdentifierType(StrEnum):
    DNS = "dns"
    IP = "ip"


# ---------------------------------------------------------------------------
# Order
# ---------------------------------------------------------------------------


class OrderStatus(StrEnum):
    PENDING = "pending"
    READY = "ready"
    PROCESSING = "processing"
    VALID = "valid"
    INVALID = "invalid"


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class PersistKind(StrEnum):
    ACCOUNT_PRIVATE_KEY = "account_private_key"
    PRIVATE_KEY = "private_key"
    CERTIFICATE = "certificate"

    @property
    def suffix(self) -> str:
        """File extension used by file-backed persistence."""
        return ".crt" if self is PersistKind.CERTIFICATE else ".key"

"""Locally persisted certificate value object."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Certificate:
    """A downloaded certificate chain together with its private key.

    Attributes
    ----------
    private_key:
        PEM-encoded private key the certificate was issued for.
    certificate:
        PEM-encoded certificate chain (leaf first).

    """

    private_key: str
    certificate: str

    def __repr__(self) -> str:
        return f"Certificate(certificate={len(self.certificate)} chars, private_key=<redacted>)"

"""JWS construction and the account signing key (RFC 7515 / 7517 / 7638).

Uses the ``cryptography`` library directly -- no josepy dependency.
Every request to the provider is a JWS in the Flattened JSON
Serialization, signed with ``ES256`` over a P-256 account key.

Security note:
    This module handles raw cryptographic operations.  Key material
    must never be logged; use :mod:`acmelib.logging.sanitize`.
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
from typing import Any

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, utils

from acmelib.errors import SigningError

log = logging.getLogger(__name__)

# --- Constants -----------------------------------------------------------

ALGORITHM = "ES256"
"""JWA algorithm used for every envelope."""

_CURVE_NAME = "P-256"
_COMPONENT_LEN = 32
"""Byte length of each of the r and s signature components for P-256."""


# --- Base64url helpers (RFC 7515 S2) -------------------------------------


def b64url_encode(b: bytes) -> str:
    """Encode bytes to base64url without padding."""
    return base64.urlsafe_b64encode(b).rstrip(b"=").decode("ascii")


def b64url_decode(s: str) -> bytes:
    """Decode a base64url string (no padding required)."""
    remainder = len(s) % 4
    if remainder:
        s += "=" * (4 - remainder)
    return base64.urlsafe_b64decode(s)


def _int_to_b64(value: int) -> str:
    return b64url_encode(value.to_bytes(_COMPONENT_LEN, "big"))


# --- Account key -----------------------------------------------------------


class AcmeKey:
    """EC P-256 private key used to authenticate requests.

    The public key (and therefore the JWK and its thumbprint) is always
    derived from the private key; it is never stored separately.
    Instances are immutable.
    """

    __slots__ = ("_private_key",)

    def __init__(self, private_key: ec.EllipticCurvePrivateKey) -> None:
        if not isinstance(private_key, ec.EllipticCurvePrivateKey) or not isinstance(
            private_key.curve, ec.SECP256R1
        ):
            msg = f"Account key must be an EC {_CURVE_NAME} private key"
            raise SigningError(msg)
        self._private_key = private_key

    @classmethod
    def generate(cls) -> AcmeKey:
        """Create a fresh random account key."""
        return cls(ec.generate_private_key(ec.SECP256R1()))

    @classmethod
    def from_pem(cls, pem: bytes) -> AcmeKey:
        """Load an unencrypted PEM private key.

        Raises
        ------
        SigningError
            If the bytes do not hold a usable P-256 private key.

        """
        try:
            key = serialization.load_pem_private_key(pem, password=None)
        except (ValueError, TypeError) as exc:
            msg = f"Invalid account key PEM: {exc}"
            raise SigningError(msg) from exc
        if not isinstance(key, ec.EllipticCurvePrivateKey):
            msg = f"Account key must be an EC {_CURVE_NAME} private key"
            raise SigningError(msg)
        return cls(key)

    def to_pem(self) -> bytes:
        """Serialise to unencrypted PKCS#8 PEM."""
        return self._private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )

    def public_jwk(self) -> dict[str, str]:
        """Return the public key as a JWK dictionary."""
        numbers = self._private_key.public_key().public_numbers()
        return {
            "crv": _CURVE_NAME,
            "kty": "EC",
            "x": _int_to_b64(numbers.x),
            "y": _int_to_b64(numbers.y),
        }

    def thumbprint(self) -> str:
        """Compute the RFC 7638 JWK Thumbprint using SHA-256."""
        # RFC 7638 requires members in lexicographic order, no whitespace
        canonical_json = json.dumps(
            self.public_jwk(),
            sort_keys=True,
            separators=(",", ":"),
        )
        digest = hashlib.sha256(canonical_json.encode("ascii")).digest()
        return b64url_encode(digest)

    def sign(self, signing_input: bytes) -> bytes:
        """Sign *signing_input* and return the raw ``r || s`` signature.

        Raises
        ------
        SigningError
            If the underlying key refuses to sign.

        """
        try:
            der_sig = self._private_key.sign(signing_input, ec.ECDSA(hashes.SHA256()))
        except Exception as exc:  # noqa: BLE001
            msg = f"Signing failed: {exc}"
            raise SigningError(msg) from exc
        # JWS EC signatures are raw r||s (not DER)
        r, s = utils.decode_dss_signature(der_sig)
        return r.to_bytes(_COMPONENT_LEN, "big") + s.to_bytes(_COMPONENT_LEN, "big")


# --- Envelope construction -------------------------------------------------


def _encode_payload(payload: Any) -> str:  # noqa: ANN401
    if payload is None:
        return ""
    return b64url_encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))


def _make_jws(protected: dict[str, Any], key: AcmeKey, payload: Any) -> bytes:  # noqa: ANN401
    protected_b64 = b64url_encode(json.dumps(protected, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _encode_payload(payload)
    signing_input = f"{protected_b64}.{payload_b64}".encode("ascii")
    signature = key.sign(signing_input)
    return json.dumps(
        {
            "protected": protected_b64,
            "payload": payload_b64,
            "signature": b64url_encode(signature),
        }
    ).encode("utf-8")


def make_jws_kid(
    url: str,
    nonce: str,
    key: AcmeKey,
    kid: str,
    payload: Any,  # noqa: ANN401
) -> bytes:
    """Build an envelope that identifies the signer by account URL.

    Parameters
    ----------
    url:
        Target URL, echoed in the protected header.
    nonce:
        Fresh anti-replay nonce; consumed by this envelope.
    key:
        Account key to sign with.
    kid:
        Registered account resource URL.
    payload:
        JSON-serialisable body, or ``None`` for POST-as-GET.

    Returns
    -------
    bytes
        The Flattened JSON Serialization, UTF-8 encoded.

    """
    protected = {"alg": ALGORITHM, "kid": kid, "nonce": nonce, "url": url}
    return _make_jws(protected, key, payload)


def make_jws_jwk(
    url: str,
    nonce: str,
    key: AcmeKey,
    payload: Any,  # noqa: ANN401
) -> bytes:
    """Build an envelope carrying the public JWK (account registration)."""
    protected = {"alg": ALGORITHM, "jwk": key.public_jwk(), "nonce": nonce, "url": url}
    return _make_jws(protected, key, payload)

"""Root conftest for the acmelib test suite."""

from __future__ import annotations

import base64
import itertools
import json
import sys
from pathlib import Path

import pytest
import yaml
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, utils

# ---------------------------------------------------------------------------
# Make ``src/`` importable without installing the package
# ---------------------------------------------------------------------------
_SRC = str(Path(__file__).resolve().parent.parent / "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)

from acmelib.transport import HttpResponse  # noqa: E402

BASE = "https://acme.test"
DIRECTORY_URL = f"{BASE}/directory"

_BAD_NONCE = "urn:ietf:params:acme:error:badNonce"
_MALFORMED = "urn:ietf:params:acme:error:malformed"


def _b64_decode(s: str) -> bytes:
    return base64.urlsafe_b64decode(s + "=" * (-len(s) % 4))


def _jwk_public_key(jwk: dict) -> ec.EllipticCurvePublicKey:
    x = int.from_bytes(_b64_decode(jwk["x"]), "big")
    y = int.from_bytes(_b64_decode(jwk["y"]), "big")
    return ec.EllipticCurvePublicNumbers(x, y, ec.SECP256R1()).public_key()


def _problem(error_type: str, detail: str, status: int = 400) -> HttpResponse:
    body = json.dumps({"type": error_type, "detail": detail, "status": status}).encode()
    return HttpResponse(status, {"Content-Type": "application/problem+json"}, body)


class FakeProvider:
    """In-process ACME provider speaking through the transport interface.

    Verifies every envelope (signature, nonce freshness, url match)
    and records what it was sent.  Behaviour knobs:

    * ``reject_nonces`` -- number of upcoming POSTs answered with
      ``badNonce`` even though the nonce is valid.
    * ``omit_order_location`` -- answer new-order without ``Location``.
    * ``order_error`` -- problem response to return for new-order.
    """

    def __init__(self) -> None:
        self.directory = {
            "newNonce": f"{BASE}/new-nonce",
            "newAccount": f"{BASE}/new-acct",
            "newOrder": f"{BASE}/new-order",
            "revokeCert": f"{BASE}/revoke-cert",
            "keyChange": f"{BASE}/key-change",
            "meta": {"termsOfService": f"{BASE}/tos"},
        }
        self._nonce_counter = itertools.count(1)
        self._order_counter = itertools.count(1)
        self.issued_nonces: set[str] = set()
        self.used_nonces: list[str] = []
        self.accounts: dict[str, dict] = {}
        self.order_payloads: list[dict] = []
        self.protected_headers: list[dict] = []
        self.content_types: list[str] = []
        self.reject_nonces = 0
        self.omit_order_location = False
        self.order_error: HttpResponse | None = None

    # -- transport interface ------------------------------------------------

    def get(self, url: str) -> HttpResponse:
        if url == DIRECTORY_URL:
            return HttpResponse(200, {"Content-Type": "application/json"}, json.dumps(self.directory).encode())
        return HttpResponse(404, {}, b"")

    def head(self, url: str) -> HttpResponse:
        assert url == self.directory["newNonce"]
        nonce = f"nonce-{next(self._nonce_counter)}"
        self.issued_nonces.add(nonce)
        return HttpResponse(200, {"Replay-Nonce": nonce}, b"")

    def post(self, url: str, body: bytes, content_type: str) -> HttpResponse:
        self.content_types.append(content_type)
        jws = json.loads(body)
        protected = json.loads(_b64_decode(jws["protected"]))
        self.protected_headers.append(protected)

        nonce = protected["nonce"]
        if nonce not in self.issued_nonces:
            return _problem(_BAD_NONCE, f"unknown nonce {nonce}")
        self.issued_nonces.discard(nonce)
        self.used_nonces.append(nonce)

        if protected["url"] != url:
            return _problem(_MALFORMED, "url mismatch")

        if "jwk" in protected:
            public_key = _jwk_public_key(protected["jwk"])
        else:
            public_key = _jwk_public_key(self.accounts[protected["kid"]]["jwk"])
        sig = _b64_decode(jws["signature"])
        der = utils.encode_dss_signature(
            int.from_bytes(sig[:32], "big"),
            int.from_bytes(sig[32:], "big"),
        )
        public_key.verify(
            der,
            f"{jws['protected']}.{jws['payload']}".encode(),
            ec.ECDSA(hashes.SHA256()),
        )

        if self.reject_nonces > 0:
            self.reject_nonces -= 1
            return _problem(_BAD_NONCE, "JWS has an invalid anti-replay nonce")

        payload = json.loads(_b64_decode(jws["payload"])) if jws["payload"] else None
        if url == self.directory["newAccount"]:
            return self._new_account(protected, payload)
        if url == self.directory["newOrder"]:
            return self._new_order(payload)
        return HttpResponse(404, {}, b"")

    # -- resources ------------------------------------------------------------

    def _new_account(self, protected: dict, payload: dict) -> HttpResponse:
        jwk = protected["jwk"]
        for acct_url, acct in self.accounts.items():
            if acct["jwk"] == jwk:
                return HttpResponse(200, {"Location": acct_url}, json.dumps(acct["body"]).encode())
        acct_url = f"{BASE}/acct/{len(self.accounts) + 1}"
        body = {
            "status": "valid",
            "contact": payload.get("contact", []),
            "termsOfServiceAgreed": payload.get("termsOfServiceAgreed", False),
            "orders": f"{acct_url}/orders",
        }
        self.accounts[acct_url] = {"jwk": jwk, "body": body}
        return HttpResponse(201, {"Location": acct_url}, json.dumps(body).encode())

    def _new_order(self, payload: dict) -> HttpResponse:
        self.order_payloads.append(payload)
        if self.order_error is not None:
            return self.order_error
        n = next(self._order_counter)
        body = {
            "status": "pending",
            "expires": "2030-01-01T00:00:00Z",
            "identifiers": payload["identifiers"],
            "authorizations": [f"{BASE}/authz/{n}-{i}" for i in range(len(payload["identifiers"]))],
            "finalize": f"{BASE}/order/{n}/finalize",
            "someUnknownField": {"ignored": True},
        }
        headers = {"Content-Type": "application/json"}
        if not self.omit_order_location:
            headers["Location"] = f"{BASE}/order/{n}"
        return HttpResponse(201, headers, json.dumps(body).encode())


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture()
def persist():
    from acmelib.persist import MemoryPersist

    return MemoryPersist()


@pytest.fixture()
def directory(provider, persist):
    from acmelib.directory import Directory

    return Directory.from_url(persist, DIRECTORY_URL, transport=provider)


@pytest.fixture()
def account(directory):
    return directory.account("foo@bar.com")


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """Write a minimal client config to a temp YAML file and return its path."""
    cfg = tmp_path / "client.yaml"
    cfg.write_text(
        yaml.safe_dump(
            {
                "directory_url": DIRECTORY_URL,
                "storage_path": str(tmp_path / "store"),
                "nonce_retry_attempts": 3,
                "logging": {"level": "debug", "format": "text"},
            },
            default_flow_style=False,
            sort_keys=False,
        ),
        encoding="utf-8",
    )
    return cfg

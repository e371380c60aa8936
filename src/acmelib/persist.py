"""Key/value persistence for account keys, certificate keys and chains.

Entries are addressed by a :class:`PersistKey` triplet
``(realm, kind, name)``.  The realm is the account's contact address
and is the only namespace discriminator, so several accounts can
share one backend.

Usage::

    persist = FilePersist("/var/lib/acmelib")
    key = PersistKey("foo@bar.com", PersistKind.CERTIFICATE, "example.com")
    persist.put(key, pem_bytes)
    persist.get(key)   # -> bytes | None
"""

from __future__ import annotations

import abc
import contextlib
import logging
import os
import re
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path

from acmelib.core.types import PersistKind
from acmelib.errors import PersistError

log = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[*/\\\x00]")


@dataclass(frozen=True)
class PersistKey:
    realm: str
    kind: PersistKind
    name: str

    def __str__(self) -> str:
        # wildcards and path separators must still map to one flat file name
        return _UNSAFE_NAME_CHARS.sub("_", f"{self.realm}_{self.kind.value}_{self.name}")


class Persist(abc.ABC):
    """Storage backend interface.

    ``get`` returns ``None`` when the entry does not exist and raises
    :class:`~acmelib.errors.PersistError` when the backend itself fails.
    """

    @abc.abstractmethod
    def get(self, key: PersistKey) -> bytes | None:
        """Return the stored bytes for *key*, or ``None``."""

    @abc.abstractmethod
    def put(self, key: PersistKey, value: bytes) -> None:
        """Store *value* under *key*, replacing any previous entry."""


class MemoryPersist(Persist):
    """In-memory backend; entries are lost when the process exits."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[PersistKey, bytes] = {}

    def get(self, key: PersistKey) -> bytes | None:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: PersistKey, value: bytes) -> None:
        with self._lock:
            self._entries[key] = bytes(value)


class FilePersist(Persist):
    """One file per entry in a flat directory.

    Entries are written through a uniquely named temporary file that is
    created with mode ``0600`` and then renamed into place.  Private keys
    keep that mode; certificates are widened to ``0644``.

    Parameters
    ----------
    directory:
        Directory that holds the entries; created on first write.

    """

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)

    def _path(self, key: PersistKey) -> Path:
        return self._dir / f"{key}{key.kind.suffix}"

    def get(self, key: PersistKey) -> bytes | None:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            msg = f"Failed to read '{path}': {exc}"
            raise PersistError(msg) from exc

    def put(self, key: PersistKey, value: bytes) -> None:
        path = self._path(key)
        tmp: str | None = None
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self._dir, prefix=f"{path.name}.", suffix=".tmp")
            with os.fdopen(fd, "wb") as fh:
                fh.write(value)
            if key.kind is PersistKind.CERTIFICATE:
                os.chmod(tmp, 0o644)
            os.replace(tmp, path)
            tmp = None
        except OSError as exc:
            msg = f"Failed to write '{path}': {exc}"
            raise PersistError(msg) from exc
        finally:
            if tmp is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp)
        log.debug("Persisted %s", key)

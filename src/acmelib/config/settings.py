"""Typed, frozen dataclasses for every configuration section.

This module is the **single source of truth** for default values.
A YAML file only needs to name what differs from the defaults::

    directory_url: https://acme-staging-v02.api.letsencrypt.org/directory
    storage_path: /var/lib/acmelib
    nonce_retry_attempts: 3
    logging:
      level: DEBUG
      format: json
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from acmelib.errors import AcmeError

log = logging.getLogger(__name__)

LETS_ENCRYPT = "https://acme-v02.api.letsencrypt.org/directory"
LETS_ENCRYPT_STAGING = "https://acme-staging-v02.api.letsencrypt.org/directory"

_LOG_FORMATS = frozenset({"text", "json"})


class ConfigError(AcmeError):
    """Raised when the configuration file cannot be loaded or is invalid."""


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingSettings:
    """Log level and output format for the ``acmelib`` logger."""

    level: str = "INFO"
    format: str = "text"


def _build_logging(data: dict | None) -> LoggingSettings:
    d = data or {}
    if not isinstance(d, dict):
        msg = f"logging must be a mapping, got {type(d).__name__}"
        raise ConfigError(msg)
    level = d.get("level", "INFO")
    if not isinstance(level, str):
        msg = f"logging.level must be a string, got {type(level).__name__}"
        raise ConfigError(msg)
    fmt = d.get("format", "text")
    if not isinstance(fmt, str) or fmt not in _LOG_FORMATS:
        msg = f"logging.format must be one of {sorted(_LOG_FORMATS)}, got {fmt!r}"
        raise ConfigError(msg)
    return LoggingSettings(
        level=level.upper(),
        format=fmt,
    )


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClientSettings:
    """Top-level client settings."""

    directory_url: str = LETS_ENCRYPT_STAGING
    user_agent: str | None = None
    timeout_seconds: float = 30.0
    nonce_retry_attempts: int = 3
    storage_path: str | None = None
    logging: LoggingSettings = field(default_factory=LoggingSettings)


def _optional_str(d: dict, name: str, default: str | None = None) -> str | None:
    value = d.get(name, default)
    if value is not None and not isinstance(value, str):
        msg = f"{name} must be a string, got {type(value).__name__}"
        raise ConfigError(msg)
    return value


def build_settings(data: dict[str, Any] | None) -> ClientSettings:
    """Build :class:`ClientSettings` from a parsed mapping.

    Raises
    ------
    ConfigError
        On unknown values or out-of-range numbers.

    """
    d = data or {}
    if not isinstance(d, dict):
        msg = f"configuration root must be a mapping, got {type(d).__name__}"
        raise ConfigError(msg)

    attempts = d.get("nonce_retry_attempts", 3)
    if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 1:
        msg = f"nonce_retry_attempts must be a positive integer, got {attempts!r}"
        raise ConfigError(msg)

    timeout = d.get("timeout_seconds", 30.0)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        msg = f"timeout_seconds must be positive, got {timeout!r}"
        raise ConfigError(msg)

    directory_url = _optional_str(d, "directory_url", LETS_ENCRYPT_STAGING)
    if not directory_url:
        msg = "directory_url must be a non-empty string"
        raise ConfigError(msg)

    return ClientSettings(
        directory_url=directory_url,
        user_agent=_optional_str(d, "user_agent"),
        timeout_seconds=float(timeout),
        nonce_retry_attempts=attempts,
        storage_path=_optional_str(d, "storage_path"),
        logging=_build_logging(d.get("logging")),
    )


def load_settings(path: str | Path) -> ClientSettings:
    """Read a YAML configuration file and build settings from it."""
    config_path = Path(path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read configuration file '{config_path}': {exc}"
        raise ConfigError(msg) from exc
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML in '{config_path}': {exc}"
        raise ConfigError(msg) from exc
    settings = build_settings(data)
    log.debug("Loaded configuration from %s", config_path)
    return settings

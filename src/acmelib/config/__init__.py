"""Client configuration.

Usage::

    from acmelib.config import load_settings

    settings = load_settings("client.yaml")
    settings.nonce_retry_attempts
"""

from acmelib.config.settings import (
    ClientSettings,
    ConfigError,
    LoggingSettings,
    build_settings,
    load_settings,
)

__all__ = [
    "ClientSettings",
    "ConfigError",
    "LoggingSettings",
    "build_settings",
    "load_settings",
]

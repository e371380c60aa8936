"""Logging subsystem for acmelib.

Public API::

    from acmelib.logging import configure_logging

    configure_logging(settings.logging)
"""

from acmelib.logging.sanitize import sanitize_for_logs
from acmelib.logging.setup import configure_logging

__all__ = ["configure_logging", "sanitize_for_logs"]

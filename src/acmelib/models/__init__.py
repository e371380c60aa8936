"""Typed views of provider JSON and local value objects.

All models are frozen dataclasses decoded at the protocol boundary.
Unknown provider fields are ignored; optional fields default
conservatively.
"""

from acmelib.models.api import ApiAccount, ApiDirectory, ApiIdentifier, ApiOrder
from acmelib.models.certificate import Certificate

__all__ = [
    "ApiAccount",
    "ApiDirectory",
    "ApiIdentifier",
    "ApiOrder",
    "Certificate",
]

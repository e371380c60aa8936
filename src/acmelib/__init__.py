"""acmelib -- ACME (RFC 8555) client for account registration and order creation.

Usage::

    from acmelib import Directory, DirectoryUrl, FilePersist

    directory = Directory.from_url(FilePersist("certs"), DirectoryUrl.LETS_ENCRYPT_STAGING)
    account = directory.account("foo@bar.com")
    order = account.new_order("example.com", ["www.example.com"])
"""

__version__ = "1.0.0"

from acmelib.account import Account  # noqa: E402
from acmelib.directory import Directory, DirectoryUrl  # noqa: E402
from acmelib.errors import (  # noqa: E402
    AcmeError,
    AcmeProblem,
    PersistError,
    ProtocolError,
    SigningError,
    TransportError,
)
from acmelib.models.certificate import Certificate  # noqa: E402
from acmelib.order import Order  # noqa: E402
from acmelib.persist import FilePersist, MemoryPersist, Persist, PersistKey  # noqa: E402

__all__ = [
    "Account",
    "AcmeError",
    "AcmeProblem",
    "Certificate",
    "Directory",
    "DirectoryUrl",
    "FilePersist",
    "MemoryPersist",
    "Order",
    "Persist",
    "PersistError",
    "PersistKey",
    "ProtocolError",
    "SigningError",
    "TransportError",
    "__version__",
]

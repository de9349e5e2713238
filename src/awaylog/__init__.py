"""
awaylog - departure/return tracking with lateness.

Usage:
    >>> from awaylog import EntryLedger, InMemoryStorage
    >>>
    >>> ledger = EntryLedger(InMemoryStorage())
    >>> entry = await ledger.open("2024-01-01T10:00:00Z", 30)
    >>> entry = await ledger.close(entry.id, "2024-01-01T10:40:00Z")
    >>> entry.late_by
    10
"""

from awaylog.core.config import Config
from awaylog.core.exceptions import (
    AwaylogError,
    ConfigurationError,
    ConflictError,
    ErrorKind,
    NotFoundError,
    StorageError,
    ValidationError,
)
from awaylog.core.types import Entry, EntryState
from awaylog.ledger import CollectionLock, EntryLedger, compute_late_by
from awaylog.storage import (
    InMemoryStorage,
    JSONFileStorage,
    RedisStorage,
    StorageBackend,
    get_storage,
)

__version__ = "0.1.0"
__all__ = [
    # Ledger
    "EntryLedger",
    "CollectionLock",
    "compute_late_by",
    # Types
    "Entry",
    "EntryState",
    # Config
    "Config",
    # Storage
    "StorageBackend",
    "InMemoryStorage",
    "JSONFileStorage",
    "RedisStorage",
    "get_storage",
    # Exceptions
    "AwaylogError",
    "ErrorKind",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "StorageError",
    "ConfigurationError",
]

"""
Ledger module - departure/return entries for awaylog.

Provides the entry ledger that uses the unified StorageBackend.
"""

from awaylog.ledger.ledger import EntryLedger, compute_late_by, validate_duration
from awaylog.ledger.lock import CollectionLock

__all__ = [
    "EntryLedger",
    "CollectionLock",
    "compute_late_by",
    "validate_duration",
]

"""
Entry ledger.

Owns the stored collection of entries and enforces their lifecycle: an
entry is opened when the subject leaves and closed once, when they return,
at which point lateness is computed. All reads and writes go through the
StorageBackend as whole-collection load/save.
"""

from __future__ import annotations

import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Callable

from awaylog.core.exceptions import ConflictError, NotFoundError, ValidationError
from awaylog.core.logging import get_logger
from awaylog.core.timestamps import MILLIS_PER_MINUTE, parse_instant, to_millis, utcnow
from awaylog.core.types import Entry
from awaylog.ledger.lock import CollectionLock

if TYPE_CHECKING:
    from awaylog.storage.base import StorageBackend

logger = get_logger("ledger")


def compute_late_by(departure_time: datetime, estimated_duration: int, return_time: datetime) -> int:
    """
    Minutes by which the return overshot departure + estimated duration.

    The millisecond difference is converted to minutes and rounded to the
    nearest minute, halves away from zero. Early or on-time returns give 0.
    """
    expected_ms = to_millis(departure_time) + estimated_duration * MILLIS_PER_MINUTE
    diff_ms = to_millis(return_time) - expected_ms
    minutes = (Decimal(diff_ms) / MILLIS_PER_MINUTE).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return max(0, int(minutes))


def validate_duration(value: Any) -> int:
    """
    Check an estimated duration in minutes.

    Integral floats (``30.0``) are accepted. Booleans, strings and fractional
    values are rejected.

    Raises:
        ValidationError: If the value is not a positive whole number
    """
    if value is None:
        raise ValidationError(
            "estimatedDuration (positive number in minutes) is required",
            field="estimatedDuration",
        )
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(
            "estimatedDuration must be a number of minutes",
            field="estimatedDuration",
            details={"value": repr(value)},
        )
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValidationError(
                "estimatedDuration must be a whole number of minutes",
                field="estimatedDuration",
                details={"value": repr(value)},
            )
        value = int(value)
    if value <= 0:
        raise ValidationError(
            "estimatedDuration must be a positive number of minutes",
            field="estimatedDuration",
            details={"value": value},
        )
    return value


class EntryLedger:
    """
    Departure/return ledger over a StorageBackend.

    Writes (open, close) hold the collection lock for their whole
    load-modify-save cycle. Reads do not lock.
    """

    COLLECTION = "entries"

    def __init__(
        self,
        storage: StorageBackend,
        collection: str | None = None,
        lock: CollectionLock | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize ledger with storage backend.

        Args:
            storage: The storage backend (InMemory, File, Redis)
            collection: Collection name, defaults to "entries"
            lock: Collection lock, defaults to one over the same storage
            clock: Source of "now" when open() gets no departure time
        """
        self._storage = storage
        self._collection = collection or self.COLLECTION
        self._lock = lock or CollectionLock(storage)
        self._clock = clock

    @property
    def collection(self) -> str:
        return self._collection

    async def _load(self) -> list[Entry]:
        records = await self._storage.load(self._collection)
        return [Entry.from_dict(record) for record in records]

    async def _save(self, entries: list[Entry]) -> None:
        await self._storage.save(self._collection, [entry.to_dict() for entry in entries])

    async def list(self) -> list[Entry]:
        """
        All entries, most recent departure first.

        Entries with equal departure times keep their stored order.

        Raises:
            StorageError: If the collection cannot be loaded or is malformed
        """
        entries = await self._load()
        return sorted(entries, key=lambda e: e.departure_time, reverse=True)

    async def get(self, entry_id: str) -> Entry:
        """
        Get entry by ID.

        Raises:
            NotFoundError: If no entry has this id
        """
        for entry in await self._load():
            if entry.id == entry_id:
                return entry
        raise NotFoundError("Entry not found", entry_id=entry_id)

    async def open(
        self,
        departure_time: datetime | str | None = None,
        estimated_duration: Any = None,
    ) -> Entry:
        """
        Record a departure.

        Args:
            departure_time: When the subject left; the ledger clock if omitted
            estimated_duration: Expected time away, in minutes

        Returns:
            The new, open entry

        Raises:
            ValidationError: On a bad duration or unparseable departure time
            StorageError: If the collection cannot be loaded or saved
        """
        try:
            duration = validate_duration(estimated_duration)
            departure = (
                self._clock()
                if departure_time is None
                else parse_instant(departure_time, "departureTime")
            )
        except ValidationError as e:
            logger.debug(f"Rejected open: {e}")
            raise

        entry = Entry(departure_time=departure, estimated_duration=duration)

        async with self._lock.hold(self._collection):
            entries = await self._load()
            entries.append(entry)
            await self._save(entries)

        logger.info(
            f"Opened entry {entry.id} (departure {entry.departure_time.isoformat()}, "
            f"estimated {entry.estimated_duration} min)"
        )
        return entry

    async def close(self, entry_id: str, return_time: datetime | str | None) -> Entry:
        """
        Record the return for an open entry and compute lateness.

        Args:
            entry_id: ID of the entry to close
            return_time: When the subject came back

        Returns:
            The closed entry

        Raises:
            ValidationError: Missing/unparseable return time, or one before departure
            NotFoundError: If no entry has this id
            ConflictError: If the entry is already closed
            StorageError: If the collection cannot be loaded or saved
        """
        try:
            returned = parse_instant(return_time, "returnTime")
        except ValidationError as e:
            logger.debug(f"Rejected close of {entry_id}: {e}")
            raise

        async with self._lock.hold(self._collection):
            entries = await self._load()
            index = next((i for i, e in enumerate(entries) if e.id == entry_id), None)
            if index is None:
                raise NotFoundError("Entry not found", entry_id=entry_id)

            entry = entries[index]
            if not entry.is_open:
                raise ConflictError("Entry already has a return time", entry_id=entry_id)

            if returned < entry.departure_time:
                raise ValidationError(
                    "Return time cannot be earlier than departure time.",
                    field="returnTime",
                    details={"entry_id": entry_id},
                )

            late_by = compute_late_by(entry.departure_time, entry.estimated_duration, returned)
            updated = entry.closed(returned, late_by)
            entries[index] = updated
            await self._save(entries)

        logger.info(f"Closed entry {entry_id} (late by {late_by} min)")
        return updated

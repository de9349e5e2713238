"""
Type definitions for awaylog.

An Entry records one departure of the tracked subject and, once they are
back, the return time and how late they were.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from awaylog.core.exceptions import StorageError, ValidationError
from awaylog.core.timestamps import ensure_utc, format_instant, parse_instant

# Wire/storage field names
ENTRY_FIELDS = ("id", "departureTime", "estimatedDuration", "returnTime", "lateBy")


class EntryState(str, Enum):
    """Lifecycle state of an entry."""

    OPEN = "open"  # Subject is out
    CLOSED = "closed"  # Subject has returned (terminal)


def new_entry_id() -> str:
    """Generate a fresh opaque entry id."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Entry:
    """
    A single departure/return record.

    Attributes:
        departure_time: When the subject left (UTC)
        estimated_duration: Expected time away, in minutes (> 0)
        id: Unique entry ID
        return_time: When the subject came back, None while open
        late_by: Minutes past the expected return, None while open
    """

    departure_time: datetime
    estimated_duration: int
    id: str = field(default_factory=new_entry_id)
    return_time: datetime | None = None
    late_by: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "departure_time", ensure_utc(self.departure_time))
        if self.return_time is not None:
            object.__setattr__(self, "return_time", ensure_utc(self.return_time))

        if isinstance(self.estimated_duration, bool) or not isinstance(
            self.estimated_duration, int
        ):
            raise ValidationError(
                "estimatedDuration must be an integer number of minutes",
                field="estimatedDuration",
            )
        if self.estimated_duration <= 0:
            raise ValidationError(
                "estimatedDuration must be a positive number of minutes",
                field="estimatedDuration",
            )
        if (self.return_time is None) != (self.late_by is None):
            raise ValidationError("returnTime and lateBy must be set together", field="lateBy")
        if self.return_time is not None and self.return_time < self.departure_time:
            raise ValidationError(
                "Return time cannot be earlier than departure time.", field="returnTime"
            )
        if self.late_by is not None and self.late_by < 0:
            raise ValidationError("lateBy cannot be negative", field="lateBy")

    @property
    def state(self) -> EntryState:
        return EntryState.OPEN if self.return_time is None else EntryState.CLOSED

    @property
    def is_open(self) -> bool:
        return self.state == EntryState.OPEN

    @property
    def expected_return(self) -> datetime:
        """Departure plus the estimated duration (plain wall-clock offset)."""
        return self.departure_time + timedelta(minutes=self.estimated_duration)

    def closed(self, return_time: datetime, late_by: int) -> Entry:
        """Return a closed copy of this entry."""
        return replace(self, return_time=return_time, late_by=late_by)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the five-field wire/storage form."""
        return {
            "id": self.id,
            "departureTime": format_instant(self.departure_time),
            "estimatedDuration": self.estimated_duration,
            "returnTime": format_instant(self.return_time) if self.return_time else None,
            "lateBy": self.late_by,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Entry:
        """
        Create Entry from a stored record.

        Raises:
            StorageError: If the record is not a well-formed entry
        """
        if not isinstance(data, dict):
            raise StorageError(f"Malformed entry record: expected object, got {type(data).__name__}")

        missing = [name for name in ENTRY_FIELDS if name not in data]
        if missing:
            raise StorageError(
                "Malformed entry record: missing fields",
                details={"missing": missing, "id": data.get("id")},
            )

        entry_id = data["id"]
        if not isinstance(entry_id, str) or not entry_id:
            raise StorageError("Malformed entry record: id must be a non-empty string")

        late_by = data["lateBy"]
        if late_by is not None and (isinstance(late_by, bool) or not isinstance(late_by, int)):
            raise StorageError(
                "Malformed entry record: lateBy must be an integer",
                details={"id": entry_id},
            )

        try:
            departure_time = parse_instant(data["departureTime"], "departureTime")
            return_time = (
                parse_instant(data["returnTime"], "returnTime")
                if data["returnTime"] is not None
                else None
            )
            return cls(
                id=entry_id,
                departure_time=departure_time,
                estimated_duration=data["estimatedDuration"],
                return_time=return_time,
                late_by=late_by,
            )
        except ValidationError as e:
            raise StorageError(
                f"Malformed entry record: {e.message}",
                details={"id": entry_id, **e.details},
            ) from e

"""
Exception hierarchy for awaylog.

All awaylog exceptions inherit from AwaylogError for easy catching. Every
error carries a machine-readable ``kind`` so callers (and the HTTP layer) can
tell "fix your input" apart from "nothing to update", "already done" and
"storage is broken".
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of failure categories."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    STORAGE = "storage"
    CONFIGURATION = "configuration"


class AwaylogError(Exception):
    """
    Base exception for all awaylog errors.

    Example:
        >>> try:
        ...     await ledger.close(entry_id, return_time)
        ... except AwaylogError as e:
        ...     print(f"{e.kind.value}: {e.message}")
    """

    kind: ErrorKind = ErrorKind.STORAGE

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Serialize for error responses."""
        return {
            "error": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(AwaylogError):
    """
    Input validation error. No state was changed.

    Raised when:
    - estimatedDuration is missing, non-numeric or not positive
    - departureTime / returnTime is missing or unparseable
    - returnTime is earlier than the entry's departureTime
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
        if field and "field" not in self.details:
            self.details["field"] = field


class NotFoundError(AwaylogError):
    """No entry with the requested id exists."""

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        message: str,
        entry_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.entry_id = entry_id
        if entry_id and "entry_id" not in self.details:
            self.details["entry_id"] = entry_id


class ConflictError(AwaylogError):
    """
    The entry is already closed.

    Closing is a one-way transition; a second close never changes the
    recorded returnTime or lateBy.
    """

    kind = ErrorKind.CONFLICT

    def __init__(
        self,
        message: str,
        entry_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.entry_id = entry_id
        if entry_id and "entry_id" not in self.details:
            self.details["entry_id"] = entry_id


class StorageError(AwaylogError):
    """
    The storage backend failed to load or save the collection.

    Raised when:
    - The backend is unreachable or an I/O call fails
    - Stored data is malformed and cannot be decoded into entries
    - The collection write lock could not be acquired
    """

    kind = ErrorKind.STORAGE

    def __init__(
        self,
        message: str,
        backend: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.backend = backend

    def __str__(self) -> str:
        if self.backend:
            return f"[{self.backend}] {super().__str__()}"
        return super().__str__()


class ConfigurationError(AwaylogError):
    """
    Configuration is missing or invalid.

    Raised when:
    - An unknown storage backend is requested
    - Required settings for a backend are absent
    """

    kind = ErrorKind.CONFIGURATION

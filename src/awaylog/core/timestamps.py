"""
UTC instant helpers.

Entries store instants at millisecond precision and serialize them as
ISO-8601 strings with a ``Z`` suffix, e.g. ``2024-01-01T10:00:00.000Z``.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from awaylog.core.exceptions import ValidationError

MILLIS_PER_MINUTE = 60_000

_FRACTION = re.compile(r"([Tt ]\d{2}:\d{2}:\d{2})[.,](\d+)")
_FORMAT_HINT = "Use ISO 8601 format (e.g., 2024-01-01T10:00:00.000Z)"


def truncate_to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision."""
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def utcnow() -> datetime:
    """Current instant, UTC, millisecond precision."""
    return truncate_to_millis(datetime.now(timezone.utc))


def ensure_utc(value: datetime) -> datetime:
    """Convert to an aware UTC datetime. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return truncate_to_millis(value.astimezone(timezone.utc))


def _pad_fraction(match: re.Match[str]) -> str:
    digits = match.group(2)[:6].ljust(6, "0")
    return f"{match.group(1)}.{digits}"


def parse_instant(value: Any, field: str = "timestamp") -> datetime:
    """
    Parse an ISO-8601 string (or datetime) into an aware UTC datetime.

    Args:
        value: ISO-8601 string or datetime
        field: Field name used in the error message

    Returns:
        UTC datetime truncated to milliseconds

    Raises:
        ValidationError: If the value is missing or cannot be parsed
    """
    if value is None or value == "":
        raise ValidationError(f"Missing {field} (ISO 8601 string)", field=field)

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        # fromisoformat() only accepts a trailing "Z" from 3.11 on
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        # ...and only 3 or 6 fraction digits on 3.10
        text = _FRACTION.sub(_pad_fraction, text, count=1)

        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(
                f"Invalid {field} format. {_FORMAT_HINT}",
                field=field,
                details={"value": value},
            ) from None
    else:
        raise ValidationError(f"Invalid {field} format. {_FORMAT_HINT}", field=field)

    try:
        return ensure_utc(parsed)
    except OverflowError:
        raise ValidationError(
            f"Invalid {field} format. {_FORMAT_HINT}",
            field=field,
            details={"value": str(value)},
        ) from None


def format_instant(value: datetime) -> str:
    """Format as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    value = ensure_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def to_millis(value: datetime) -> int:
    """Milliseconds since the Unix epoch."""
    value = ensure_utc(value)
    epoch = datetime(1970, 1, 1, tzinfo=timezone.utc)
    delta = value - epoch
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000

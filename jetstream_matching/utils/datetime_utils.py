"""Utility functions for working with dates and times."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any

__all__ = [
    "get_current_timestamp",
    "parse_datetime",
    "as_utc",
    "to_iso",
    "format_date",
    "format_time",
    "format_datetime",
]


def get_current_timestamp() -> datetime:
    """Return the current UTC datetime with micro-second precision.

    This object can be stored directly in MongoDB where it will be written as
    a BSON Date. When you need a human-readable version, pass the datetime
    to ``format_datetime``.
    """
    return datetime.now(tz=timezone.utc)


def parse_datetime(value: Any) -> datetime | None:
    """Coerce a stored timestamp (ISO string, date or datetime) to ``datetime``.

    Returns ``None`` for empty values. A trailing ``Z`` is accepted as UTC.
    Plain dates become midnight of that day.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    raise TypeError(f"Cannot parse datetime from {type(value).__name__}")


def as_utc(value: date | datetime) -> datetime:
    """Aware UTC datetime for *value*. Naive values and plain dates are taken as UTC."""
    value = parse_datetime(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: date | datetime | None) -> str | None:
    """ISO-8601 text for *value*, or ``None``."""
    if value is None:
        return None
    return value.isoformat()


def format_date(value: date | datetime) -> str:
    """Render a date as ``June 1, 2025``."""
    return f"{value:%B} {value.day}, {value.year}"


def format_time(value: datetime) -> str:
    """Render a time of day as ``09:30 AM``."""
    return value.strftime("%I:%M %p")


def format_datetime(value: datetime) -> str:
    """Render a timestamp as ``June 1, 2025 09:30 AM``."""
    return f"{format_date(value)} {format_time(value)}"

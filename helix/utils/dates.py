"""Date helpers shared by entities, normalizers and repositories."""

from datetime import date, datetime, timezone
from typing import Any, Optional


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a date from an ISO string, date or datetime.

    Accepts "2024-03-01", "2024-03-01T10:00:00Z" and date/datetime objects.
    Returns None for None or empty strings.

    Raises:
        ValueError: If the value is present but not a recognizable date
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unrecognized date value: {value!r}")

    text = value.strip()
    if "T" in text:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    return date.fromisoformat(text)


def months_between(start: date, end: date) -> float:
    """Whole and fractional months between two dates (30.44-day months)."""
    return max(0.0, (end - start).days / 30.44)

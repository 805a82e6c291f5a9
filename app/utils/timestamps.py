"""Timestamp helpers for message metadata and email content."""

from datetime import datetime, timezone
from typing import Any, Optional


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    Naive datetimes are treated as UTC; aware ones are converted.

    Example:
        >>> naive = datetime(2025, 11, 4, 12, 0, 0)
        >>> ensure_utc(naive).tzinfo == timezone.utc
        True
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def parse_iso_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 value from a message payload to a UTC datetime.

    Producers serialize timestamps in several shapes:
    - 2025-11-04T12:00:00Z
    - 2025-11-04T12:00:00.1234567Z (7 fractional digits from .NET producers)
    - 2025-11-04T12:00:00+00:00
    - 2025-11-04

    The timestamp is informational only, so anything unparseable (including
    non-string values) yields None instead of an error.

    Example:
        >>> parse_iso_datetime("2025-11-04T12:00:00Z").day
        4
        >>> parse_iso_datetime("yesterday") is None
        True
    """
    if not isinstance(value, str) or not value.strip():
        return None

    cleaned = value.strip()
    if cleaned.endswith(("Z", "z")):
        cleaned = cleaned[:-1] + "+00:00"

    # fromisoformat accepts at most 6 fractional digits on older interpreters
    if "." in cleaned:
        head, _, tail = cleaned.partition(".")
        digits = len(tail) - len(tail.lstrip("0123456789"))
        if digits > 6:
            cleaned = f"{head}.{tail[:6]}{tail[digits:]}"

    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        pass

    try:
        return ensure_utc(datetime.strptime(value.strip(), "%Y-%m-%d"))
    except ValueError:
        return None


def format_display_timestamp(dt: Optional[datetime] = None) -> str:
    """Format a moment as ``dd/mm/YYYY HH:MM:SS`` in the worker's local time.

    Used in security notices (login, password change) so the reader sees the
    same clock as the server logs.

    Example:
        >>> format_display_timestamp(datetime(2025, 11, 4, 9, 5, 0))
        '04/11/2025 09:05:00'
    """
    moment = dt or datetime.now()
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.strftime("%d/%m/%Y %H:%M:%S")

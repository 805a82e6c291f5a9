"""Duration parsing for broker timing settings ("3s", "1m30s", "PT10S")."""

import re


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""

    pass


_ISO8601_PATTERN = re.compile(r"^PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?$")
_HUMAN_PATTERN = re.compile(r"(\d+)([smh])")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600}


def parse_duration(duration_str: str) -> int:
    """
    Parse a duration string to whole seconds.

    Accepts human-readable values ("3s", "10s", "1m30s", "1h") and ISO-8601
    time durations ("PT3S", "PT1M30S"). Day units are not accepted; nothing
    in the broker settings needs them.

    Args:
        duration_str: Duration string to parse

    Returns:
        Duration in seconds

    Raises:
        DurationParseError: If the duration string is invalid or zero

    Examples:
        >>> parse_duration("3s")
        3
        >>> parse_duration("PT1M30S")
        90
    """
    if not isinstance(duration_str, str):
        raise DurationParseError(f"Duration must be a string, got: {duration_str!r}")

    cleaned = re.sub(r"\s+", "", duration_str).lower()
    if not cleaned:
        raise DurationParseError("Duration string cannot be empty")

    if cleaned.startswith("p"):
        match = _ISO8601_PATTERN.match(cleaned.upper())
        if not match or not any(match.groups()):
            raise DurationParseError(
                f"Invalid ISO-8601 duration format: '{duration_str}'. "
                "Expected format like 'PT3S', 'PT1M30S' or 'PT1H'"
            )
        hours, minutes, seconds = (int(part or 0) for part in match.groups())
        total_seconds = hours * 3600 + minutes * 60 + seconds
    else:
        parts = _HUMAN_PATTERN.findall(cleaned)
        if not parts or "".join(f"{num}{unit}" for num, unit in parts) != cleaned:
            raise DurationParseError(
                f"Invalid duration format: '{duration_str}'. "
                "Use digits with units s, m or h, e.g. '3s', '10s' or '1m30s'"
            )
        total_seconds = sum(int(num) * _UNIT_SECONDS[unit] for num, unit in parts)

    if total_seconds == 0:
        raise DurationParseError(f"Duration cannot be zero: '{duration_str}'")

    return total_seconds


def validate_duration_range(
    duration_seconds: int,
    min_seconds: int = 1,
    max_seconds: int = 3600,
) -> None:
    """
    Validate that a duration is within an acceptable range.

    Raises:
        DurationParseError: If duration is outside the valid range
    """
    if duration_seconds < min_seconds:
        raise DurationParseError(
            f"Duration too short: {duration_seconds}s. Minimum is {min_seconds}s."
        )

    if duration_seconds > max_seconds:
        raise DurationParseError(
            f"Duration too long: {duration_seconds}s. Maximum is {max_seconds}s."
        )

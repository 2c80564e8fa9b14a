"""Timestamp helpers shared across packages."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Get the current time as an aware UTC datetime.

    Returns:
        Current UTC datetime
    """
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """
    Render a datetime as ISO-8601 UTC with milliseconds and a 'Z' suffix.

    Args:
        value: Datetime to render (naive values are taken as UTC)

    Returns:
        Timestamp string, e.g. "2025-01-01T12:00:00.000Z"
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Args:
        value: Timestamp string ('Z' suffix, explicit offset, or naive)

    Returns:
        Aware datetime in UTC

    Raises:
        ValueError: If the string is not a valid timestamp
    """
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be a string, got {type(value).__name__}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)

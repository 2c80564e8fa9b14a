"""Remaining lifetime of a record and its countdown rendering."""

from datetime import datetime
from typing import Optional

from common.constants import EXPIRING_SOON_MS
from common.utils import utc_now

EXPIRED_LABEL = "expired"


def get_time_until_expiry(expires_at: datetime, now: Optional[datetime] = None) -> int:
    """
    Milliseconds left before a record expires, never negative.

    Args:
        expires_at: Absolute expiry instant
        now: Current time (defaults to the wall clock)

    Returns:
        Remaining time in milliseconds
    """
    if now is None:
        now = utc_now()
    remaining = (expires_at - now).total_seconds() * 1000
    return max(0, int(remaining))


def is_expiring_soon(remaining_ms: int) -> bool:
    return remaining_ms < EXPIRING_SOON_MS


def format_expiry_time(remaining_ms: int) -> str:
    """
    Render a countdown such as "4m 59s" or "42s".

    Zero or negative input renders as "expired".
    """
    if remaining_ms <= 0:
        return EXPIRED_LABEL

    total_seconds = remaining_ms // 1000
    minutes, seconds = divmod(total_seconds, 60)
    hours, minutes = divmod(minutes, 60)

    if hours:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"

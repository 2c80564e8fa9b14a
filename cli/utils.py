"""Utility functions for CLI output."""

from datetime import datetime
from typing import Optional

from common.types import FileRecord
from lifecycle.expiry import format_expiry_time, get_time_until_expiry, is_expiring_soon
from cli.constants import RED, RESET

SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


def format_file_size(size_bytes: int) -> str:
    """
    Format a byte count for display.

    Uses 1024-based units up to GB with at most two decimals, trailing
    zeros dropped (e.g. "0 Bytes", "1.5 KB", "2 MB").

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit
    """
    if size_bytes <= 0:
        return "0 Bytes"

    size = float(size_bytes)
    unit_index = 0
    while size >= 1024 and unit_index < len(SIZE_UNITS) - 1:
        size /= 1024
        unit_index += 1

    value = f"{size:.2f}".rstrip('0').rstrip('.')
    return f"{value} {SIZE_UNITS[unit_index]}"


def format_record_line(record: FileRecord, now: Optional[datetime] = None) -> str:
    """One line of the file listing: ID, name, size, downloads and countdown."""
    remaining = get_time_until_expiry(record.expires_at, now)
    countdown = format_expiry_time(remaining)
    if is_expiring_soon(remaining):
        countdown = f"{RED}{countdown} !{RESET}"

    return (
        f"  {record.id}  {record.original_name}  ({format_file_size(record.size)}, "
        f"{record.download_count} downloads)  expires in {countdown}"
    )

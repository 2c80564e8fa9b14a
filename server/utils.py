"""Utility helper functions for the share server."""

from typing import Dict
from urllib.parse import quote

NO_CACHE_HEADERS: Dict[str, str] = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def content_disposition(filename: str) -> str:
    """
    Build an attachment Content-Disposition header value.

    Args:
        filename: Download name (may contain non-ASCII characters)

    Returns:
        Header value with a percent-encoded filename and an RFC 5987 filename*
    """
    encoded = quote(filename, safe="")
    return f"attachment; filename=\"{encoded}\"; filename*=UTF-8''{encoded}"


def parse_flag(value) -> bool:
    """Interpret a form field such as securityMode="true"."""
    if value is None:
        return False
    return str(value).strip().lower() == "true"

"""Configuration settings for the share server."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from common.constants import (
    DEFAULT_CLEANUP_INTERVAL_MINUTES,
    DEFAULT_TTL_MINUTES,
    RATE_LIMIT_MAX_UPLOADS,
    RATE_LIMIT_WINDOW_SECONDS,
)


SERVER_HOST = os.environ.get("FILELINK_HOST", "0.0.0.0")

SERVER_PORT = int(os.environ.get("FILELINK_PORT", "8000"))


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ServerSettings:
    """Settings the application factory builds its components from."""
    data_dir: Path = Path("./data")
    public_url: str = "http://localhost:8000"
    share_base_url: Optional[str] = None
    ttl_minutes: float = DEFAULT_TTL_MINUTES
    cleanup_interval_minutes: float = DEFAULT_CLEANUP_INTERVAL_MINUTES
    rate_limit_max_uploads: int = RATE_LIMIT_MAX_UPLOADS
    rate_limit_window_seconds: float = RATE_LIMIT_WINDOW_SECONDS
    purge_expired_blobs: bool = True

    @property
    def share_url_prefix(self) -> str:
        return (self.share_base_url or f"{self.public_url.rstrip('/')}/share").rstrip('/')

    @property
    def metadata_path(self) -> Path:
        return self.data_dir / "metadata.json"

    @property
    def blob_dir(self) -> Path:
        return self.data_dir / "files"

    @classmethod
    def from_env(cls) -> "ServerSettings":
        return cls(
            data_dir=Path(os.environ.get("FILELINK_DATA_DIR", "./data")),
            public_url=os.environ.get("FILELINK_PUBLIC_URL", f"http://localhost:{SERVER_PORT}"),
            share_base_url=os.environ.get("FILELINK_SHARE_BASE_URL"),
            ttl_minutes=float(os.environ.get("FILELINK_TTL_MINUTES", DEFAULT_TTL_MINUTES)),
            cleanup_interval_minutes=float(
                os.environ.get("FILELINK_CLEANUP_INTERVAL_MINUTES", DEFAULT_CLEANUP_INTERVAL_MINUTES)
            ),
            rate_limit_max_uploads=int(os.environ.get("FILELINK_RATE_LIMIT_MAX_UPLOADS", RATE_LIMIT_MAX_UPLOADS)),
            rate_limit_window_seconds=float(
                os.environ.get("FILELINK_RATE_LIMIT_WINDOW_SECONDS", RATE_LIMIT_WINDOW_SECONDS)
            ),
            purge_expired_blobs=_env_bool("FILELINK_PURGE_EXPIRED_BLOBS", True),
        )

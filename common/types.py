"""Shared data type definitions (FileRecord, UploadStatistics, RateLimitResult)."""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from common.constants import DEFAULT_MIME_TYPE, NO_TYPE_SENTINEL
from common.utils import format_timestamp, parse_timestamp


@dataclass(frozen=True)
class FileRecord:
    """
    Metadata for one uploaded file.

    The bytes live with the storage collaborator at `url`; this record only
    points at them. `user_id` is the uploader's session ID and serves as a
    soft ownership marker, not an authentication credential.
    """
    id: str
    filename: str
    original_name: str
    size: int
    url: str
    uploaded_at: datetime
    expires_at: datetime
    user_id: str
    content_type: str = DEFAULT_MIME_TYPE
    download_count: int = 0
    security_mode: bool = False

    def __post_init__(self):
        if not self.id:
            raise ValueError("File ID must not be empty")
        if self.size < 0:
            raise ValueError(f"File size must be non-negative, got {self.size}")
        if self.download_count < 0:
            raise ValueError(f"Download count must be non-negative, got {self.download_count}")
        if self.expires_at <= self.uploaded_at:
            raise ValueError("expiresAt must be later than uploadedAt")
        if not self.content_type:
            object.__setattr__(self, "content_type", DEFAULT_MIME_TYPE)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def with_download(self) -> "FileRecord":
        """Return a copy with the download counter incremented."""
        return replace(self, download_count=self.download_count + 1)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize to the camelCase form used for persistence and the HTTP API.

        Returns:
            JSON-compatible dictionary
        """
        return {
            "id": self.id,
            "filename": self.filename,
            "originalName": self.original_name,
            "size": self.size,
            "type": self.content_type,
            "url": self.url,
            "uploadedAt": format_timestamp(self.uploaded_at),
            "expiresAt": format_timestamp(self.expires_at),
            "downloadCount": self.download_count,
            "userId": self.user_id,
            "securityMode": self.security_mode,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_ttl: Optional[timedelta] = None) -> "FileRecord":
        """
        Build a record from its camelCase dictionary form.

        Args:
            data: Dictionary as produced by to_dict() or returned by the upload endpoint
            default_ttl: Lifetime used to derive expiresAt when the entry has none

        Returns:
            FileRecord instance

        Raises:
            ValueError: If required fields are missing or malformed
        """
        if not isinstance(data, dict):
            raise ValueError(f"Record must be an object, got {type(data).__name__}")

        try:
            uploaded_at = parse_timestamp(data["uploadedAt"])
            if data.get("expiresAt"):
                expires_at = parse_timestamp(data["expiresAt"])
            elif default_ttl is not None:
                expires_at = uploaded_at + default_ttl
            else:
                raise ValueError(f"Record {data.get('id')} has no expiresAt")

            return cls(
                id=str(data["id"]),
                filename=str(data.get("filename") or data["id"]),
                original_name=str(data.get("originalName") or data.get("filename") or data["id"]),
                size=int(data["size"]),
                url=str(data["url"]),
                uploaded_at=uploaded_at,
                expires_at=expires_at,
                user_id=str(data.get("userId") or ""),
                content_type=str(data.get("type") or DEFAULT_MIME_TYPE),
                download_count=int(data.get("downloadCount") or 0),
                security_mode=bool(data.get("securityMode", False)),
            )
        except KeyError as e:
            raise ValueError(f"Record is missing field {e}")
        except TypeError as e:
            raise ValueError(f"Record has a malformed field: {e}")


@dataclass(frozen=True)
class RateLimitResult:
    """
    Outcome of a rate limit check.
    """
    allowed: bool
    retry_after: Optional[timedelta] = None


@dataclass(frozen=True)
class UploadStatistics:
    """
    Summary derived from the current store.
    """
    total_uploads: int = 0
    uploads_today: int = 0
    total_size: int = 0
    average_file_size: int = 0
    most_uploaded_type: str = NO_TYPE_SENTINEL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalUploads": self.total_uploads,
            "uploadsToday": self.uploads_today,
            "totalSize": self.total_size,
            "averageFileSize": self.average_file_size,
            "mostUploadedType": self.most_uploaded_type,
        }

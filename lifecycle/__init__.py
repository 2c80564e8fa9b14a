"""Client-side file lifecycle: IDs, rate limiting, metadata, expiry and cleanup."""

from lifecycle.cleanup import CleanupHandle, CleanupScheduler
from lifecycle.expiry import format_expiry_time, get_time_until_expiry, is_expiring_soon
from lifecycle.id_generator import allocate_file_id, generate_file_id, generate_session_id
from lifecycle.local_storage import InMemoryStorage, JsonFileStorage, LocalStorage
from lifecycle.metadata_store import MetadataStore
from lifecycle.rate_limiter import RateLimiter
from lifecycle.session import SessionManager
from lifecycle.settings import SecuritySettings, UserSettings
from lifecycle.statistics import get_upload_statistics

__all__ = [
    "CleanupHandle",
    "CleanupScheduler",
    "format_expiry_time",
    "get_time_until_expiry",
    "is_expiring_soon",
    "allocate_file_id",
    "generate_file_id",
    "generate_session_id",
    "InMemoryStorage",
    "JsonFileStorage",
    "LocalStorage",
    "MetadataStore",
    "RateLimiter",
    "SessionManager",
    "SecuritySettings",
    "UserSettings",
    "get_upload_statistics",
]

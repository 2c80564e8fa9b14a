"""Project-wide constants (ID shape, lifetimes, rate limits, storage keys)."""

FILE_ID_ALPHABET: str = "abcdefghijklmnopqrstuvwxyz0123456789"
FILE_ID_LENGTH: int = 4
SESSION_ID_BYTES: int = 8  # 16 hex characters
MAX_ID_ATTEMPTS: int = 5

DEFAULT_TTL_MINUTES: int = 5
DEFAULT_CLEANUP_INTERVAL_MINUTES: int = 1
MIN_AUTO_DELETE_MINUTES: int = 1
MAX_AUTO_DELETE_MINUTES: int = 60

EXPIRING_SOON_MS: int = 60 * 1000

RATE_LIMIT_MAX_UPLOADS: int = 10
RATE_LIMIT_WINDOW_SECONDS: int = 60

DEFAULT_MIME_TYPE: str = "application/octet-stream"
DEFAULT_EXTENSION: str = "bin"
NO_TYPE_SENTINEL: str = "none"

FILES_KEY: str = "uploadedFiles"
SESSION_KEY: str = "userSessionId"
RATE_LIMIT_KEY_PREFIX: str = "uploadTimestamps:"
AUTO_DELETE_KEY: str = "autoDeleteMinutes"
SECURITY_SETTINGS_KEY: str = "securitySettings"

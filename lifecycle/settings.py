"""User preferences persisted next to the file list."""

import json
from dataclasses import dataclass
from typing import Optional

from common.constants import (
    AUTO_DELETE_KEY,
    DEFAULT_TTL_MINUTES,
    MAX_AUTO_DELETE_MINUTES,
    MIN_AUTO_DELETE_MINUTES,
    SECURITY_SETTINGS_KEY,
)
from common.logging_config import get_logger
from lifecycle.local_storage import LocalStorage

logger = get_logger(__name__)


@dataclass(frozen=True)
class SecuritySettings:
    encryption_enabled: bool = False


class UserSettings:
    """Reads and writes the auto-delete time and security preferences."""

    def __init__(self, storage: LocalStorage):
        self.storage = storage

    def get_auto_delete_minutes(self) -> int:
        """
        Get the lifetime applied to new uploads.

        Returns:
            Minutes between upload and expiry (default 5)
        """
        raw = self.storage.get_item(AUTO_DELETE_KEY)
        if raw is None:
            return DEFAULT_TTL_MINUTES

        try:
            minutes = int(raw)
        except ValueError:
            logger.warning(f"Ignoring invalid stored auto-delete value {raw!r}")
            return DEFAULT_TTL_MINUTES

        if not MIN_AUTO_DELETE_MINUTES <= minutes <= MAX_AUTO_DELETE_MINUTES:
            return DEFAULT_TTL_MINUTES
        return minutes

    def set_auto_delete_minutes(self, minutes: int) -> None:
        """
        Persist the lifetime applied to new uploads.

        Args:
            minutes: Value between 1 and 60

        Raises:
            ValueError: If minutes is out of range
        """
        if not MIN_AUTO_DELETE_MINUTES <= minutes <= MAX_AUTO_DELETE_MINUTES:
            raise ValueError(
                f"Auto-delete time must be between {MIN_AUTO_DELETE_MINUTES} "
                f"and {MAX_AUTO_DELETE_MINUTES} minutes"
            )
        self.storage.set_item(AUTO_DELETE_KEY, str(minutes))

    def get_security_settings(self) -> SecuritySettings:
        raw = self.storage.get_item(SECURITY_SETTINGS_KEY)
        if raw is None:
            return SecuritySettings()

        try:
            data = json.loads(raw)
            return SecuritySettings(encryption_enabled=bool(data.get("encryptionEnabled", False)))
        except (json.JSONDecodeError, AttributeError):
            logger.warning("Ignoring unreadable security settings")
            return SecuritySettings()

    def update_security_settings(self, encryption_enabled: Optional[bool] = None) -> SecuritySettings:
        current = self.get_security_settings()
        if encryption_enabled is not None:
            current = SecuritySettings(encryption_enabled=encryption_enabled)

        self.storage.set_item(
            SECURITY_SETTINGS_KEY,
            json.dumps({"encryptionEnabled": current.encryption_enabled}),
        )
        return current

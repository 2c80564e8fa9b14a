"""Configuration management for the FileLink CLI."""

import json
import os
import shutil
from pathlib import Path

from common.constants import DEFAULT_CLEANUP_INTERVAL_MINUTES
from common.logging_config import get_logger

logger = get_logger(__name__)


class Config:
    """Manages CLI configuration stored in JSON file."""

    DEFAULT_CONFIG = {
        "server_host": os.environ.get("FILELINK_SERVER_HOST", "localhost"),
        "server_port": int(os.environ.get("FILELINK_SERVER_PORT", "8000")),
        "timeout": 30,
        "max_retries": 3,
        "retry_backoff_multiplier": 2,
        "cleanup_interval_minutes": DEFAULT_CLEANUP_INTERVAL_MINUTES,
        "downloads_dir": "downloads",
    }

    def __init__(self, config_path: Path):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.filelink/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            import tempfile
            self.config_path = Path(tempfile.gettempdir()) / '.filelink' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("config root must be an object")
                config = self.DEFAULT_CONFIG.copy()
                config.update(data)
                return config
            except (json.JSONDecodeError, ValueError, IOError) as e:
                logger.warning(f"Config file {self.config_path} is unreadable, using defaults: {e}")
                backup_path = self.config_path.with_suffix('.json.bak')
                try:
                    shutil.copy(self.config_path, backup_path)
                except OSError as copy_error:
                    logger.error(f"Failed to back up config file: {copy_error}")
                return self.DEFAULT_CONFIG.copy()
        else:
            config = self.DEFAULT_CONFIG.copy()
            try:
                with open(self.config_path, 'w') as f:
                    json.dump(config, f, indent=2)
            except IOError as e:
                logger.warning(f"Could not write default config: {e}")
            return config

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except IOError as e:
            logger.error(f"Failed to save config: {e}")

    def get_base_url(self) -> str:
        """
        Get server base URL.

        Returns:
            Base URL string (e.g., "http://localhost:8000")
        """
        host = self.data.get('server_host', 'localhost')
        port = self.data.get('server_port', 8000)
        return f"http://{host}:{port}"

    def get_timeout(self) -> int:
        return self.data.get('timeout', 30)

    def get_retry_config(self) -> dict:
        """
        Get retry configuration.

        Returns:
            Dictionary with 'max_retries' and 'retry_backoff_multiplier'
        """
        return {
            'max_retries': self.data.get('max_retries', 3),
            'retry_backoff_multiplier': self.data.get('retry_backoff_multiplier', 2),
        }

    def get_cleanup_interval_minutes(self) -> float:
        return float(self.data.get('cleanup_interval_minutes', DEFAULT_CLEANUP_INTERVAL_MINUTES))

    def get_downloads_dir(self) -> Path:
        return Path(self.data.get('downloads_dir', 'downloads'))

    def get_local_storage_path(self) -> Path:
        """Path of the JSON file holding the local file list, session and settings."""
        return self.config_path.parent / 'local_storage.json'

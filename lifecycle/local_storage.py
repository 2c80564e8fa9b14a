"""Local key-value persistence backends for client-side state."""

import json
import os
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from common.logging_config import get_logger

logger = get_logger(__name__)


class LocalStorage(Protocol):
    """
    String key-value area scoped to one client.
    """

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> List[str]: ...


class InMemoryStorage:
    """Dictionary-backed storage, lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data)


class JsonFileStorage:
    """
    Storage persisted as a single JSON object on disk.

    Every write rewrites the whole file through a temporary file so a crash
    never leaves a half-written document behind. A document that cannot be
    parsed is copied to a .bak file and the storage starts out empty.
    """

    def __init__(self, path: Path):
        """
        Initialize file storage.

        Args:
            path: Path to the JSON file (created on first write)
        """
        self.path = Path(path)
        self._lock = threading.Lock()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._data = self._load()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            return {str(k): v for k, v in data.items() if isinstance(v, str)}
        except (json.JSONDecodeError, ValueError, UnicodeDecodeError) as e:
            backup_path = self.path.with_suffix('.json.bak')
            logger.warning(f"Local storage at {self.path} is unreadable, starting empty (backup: {backup_path}): {e}")
            try:
                shutil.copy(self.path, backup_path)
            except OSError as copy_error:
                logger.error(f"Failed to back up unreadable storage file: {copy_error}")
            return {}

    def _flush(self) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(self._data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except Exception:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
            self._flush()

    def remove_item(self, key: str) -> None:
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._flush()

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data)

"""Persisted mapping of file ID to FileRecord."""

import json
import threading
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from common.constants import DEFAULT_TTL_MINUTES, FILES_KEY
from common.exceptions import DuplicateIdError, PersistenceCorruptError
from common.logging_config import get_logger
from common.types import FileRecord
from common.utils import utc_now
from lifecycle.local_storage import LocalStorage

logger = get_logger(__name__)


class MetadataStore:
    """
    Single source of truth for the files a client knows about.

    Records are kept as one JSON array under the `uploadedFiles` key, newest
    first. Every mutation is a read-modify-write of the whole array guarded by
    one lock, so ID uniqueness and the ownership check hold even when the
    store is shared between threads.

    Readers get snapshots: the records returned are immutable copies and do
    not follow later changes.
    """

    def __init__(
        self,
        storage: LocalStorage,
        default_ttl: timedelta = timedelta(minutes=DEFAULT_TTL_MINUTES),
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            storage: Backend the record array is persisted to
            default_ttl: Lifetime assumed for persisted entries without expiresAt
            clock: Source of the current time
        """
        self.storage = storage
        self.default_ttl = default_ttl
        self.clock = clock
        self._lock = threading.RLock()

    def _read_records(self, fallback_ttl: Optional[timedelta] = None) -> List[FileRecord]:
        """
        Load every persisted record, expired ones included.

        Raises:
            PersistenceCorruptError: If the stored array cannot be parsed
        """
        raw = self.storage.get_item(FILES_KEY)
        if raw is None:
            return []

        try:
            entries = json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceCorruptError(f"File list is not valid JSON: {e}")

        if not isinstance(entries, list):
            raise PersistenceCorruptError(f"File list must be an array, got {type(entries).__name__}")

        records = []
        for entry in entries:
            try:
                records.append(FileRecord.from_dict(entry, default_ttl=fallback_ttl or self.default_ttl))
            except ValueError as e:
                logger.warning(f"Dropping malformed file entry: {e}")
        return records

    def _load(self, fallback_ttl: Optional[timedelta] = None) -> List[FileRecord]:
        try:
            return self._read_records(fallback_ttl)
        except PersistenceCorruptError as e:
            logger.warning(f"Stored file list is corrupt, treating it as empty: {e}")
            return []

    def _write(self, records: List[FileRecord]) -> None:
        self.storage.set_item(FILES_KEY, json.dumps([r.to_dict() for r in records], ensure_ascii=False))

    def file_id_exists(self, file_id: str) -> bool:
        """Check whether a live record holds the ID."""
        return self.get_file_by_id(file_id) is not None

    def save_file_metadata(self, record: FileRecord) -> FileRecord:
        """
        Insert a new record.

        An expired entry that the sweep has not removed yet does not block
        its ID; it is replaced.

        Args:
            record: Record to persist

        Returns:
            The stored record

        Raises:
            DuplicateIdError: If a live record already uses record.id
        """
        with self._lock:
            now = self.clock()
            records = self._load()

            for existing in records:
                if existing.id == record.id and not existing.is_expired(now):
                    raise DuplicateIdError(f"File ID {record.id} is already in use")

            records = [r for r in records if r.id != record.id]
            records.insert(0, record)
            self._write(records)

        logger.info(f"Saved file metadata [file_id={record.id}] expires_at={record.expires_at.isoformat()}")
        return record

    def get_stored_files(self) -> List[FileRecord]:
        """
        List live records, most recent upload first.

        A missing or corrupt store yields an empty list.

        Returns:
            Snapshot of non-expired records
        """
        now = self.clock()
        with self._lock:
            records = self._load()

        live = [r for r in records if not r.is_expired(now)]
        live.sort(key=lambda r: r.uploaded_at, reverse=True)
        return live

    def get_file_by_id(self, file_id: str) -> Optional[FileRecord]:
        """
        Look up a live record.

        Args:
            file_id: Share ID

        Returns:
            The record, or None if it is unknown or expired
        """
        now = self.clock()
        with self._lock:
            records = self._load()

        for record in records:
            if record.id == file_id:
                return None if record.is_expired(now) else record
        return None

    def delete_file_metadata(self, file_id: str, session_id: str) -> bool:
        """
        Delete a record owned by the given session.

        Ownership is a plain comparison of session ID and record.user_id.

        Args:
            file_id: Share ID
            session_id: Caller's session ID

        Returns:
            True if the record was removed, False if it is unknown or owned by another session
        """
        with self._lock:
            records = self._load()
            target = next((r for r in records if r.id == file_id), None)

            if target is None:
                logger.info(f"Delete requested for unknown file [file_id={file_id}]")
                return False

            if not session_id or target.user_id != session_id:
                logger.warning(f"Delete refused, session does not own file [file_id={file_id}]")
                return False

            self._write([r for r in records if r.id != file_id])

        logger.info(f"Deleted file metadata [file_id={file_id}]")
        return True

    def update_download_count(self, file_id: str) -> Optional[FileRecord]:
        """
        Increment the download counter of a record.

        Args:
            file_id: Share ID

        Returns:
            The updated record, or None when there is no live record with the ID
        """
        with self._lock:
            now = self.clock()
            records = self._load()
            updated = None

            for index, record in enumerate(records):
                if record.id == file_id and not record.is_expired(now):
                    updated = record.with_download()
                    records[index] = updated
                    break

            if updated is None:
                logger.debug(f"Download count not updated, unknown or expired file [file_id={file_id}]")
                return None

            self._write(records)

        return updated

    def remove_expired(self, fallback_ttl: Optional[timedelta] = None) -> List[FileRecord]:
        """
        Physically remove every record whose expiry has passed.

        Args:
            fallback_ttl: Lifetime for persisted entries that carry no expiresAt

        Returns:
            The removed records
        """
        with self._lock:
            now = self.clock()
            try:
                records = self._read_records(fallback_ttl)
            except PersistenceCorruptError as e:
                logger.warning(f"Stored file list is corrupt, resetting it: {e}")
                self._write([])
                return []

            expired = [r for r in records if r.is_expired(now)]
            if expired:
                self._write([r for r in records if not r.is_expired(now)])

        return expired

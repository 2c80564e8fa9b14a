"""File service for upload, download and ownership checks."""

from datetime import timedelta
from typing import Iterator, Optional, Tuple

from common.constants import DEFAULT_EXTENSION, DEFAULT_MIME_TYPE, MAX_ID_ATTEMPTS
from common.exceptions import DuplicateIdError, NotFoundError, RateLimitedError, UpstreamFailureError
from common.logging_config import get_logger
from common.types import FileRecord, UploadStatistics
from lifecycle.id_generator import allocate_file_id, generate_session_id
from lifecycle.metadata_store import MetadataStore
from lifecycle.rate_limiter import RateLimiter
from lifecycle.statistics import get_upload_statistics
from server.storage import LocalBlobStorage

logger = get_logger(__name__)


def build_storage_filename(file_id: str, original_name: str) -> str:
    """
    Storage-side name: the file ID plus the original extension.

    Names without an extension, or whose extension is not plain ASCII
    letters and digits, get ".bin". The result is safe to put in a URL path.
    """
    base = original_name.rsplit('/', 1)[-1]
    extension = base.rsplit('.', 1)[-1] if '.' in base.strip('.') else ""
    if not (extension.isascii() and extension.isalnum()):
        extension = ""
    return f"{file_id}.{extension or DEFAULT_EXTENSION}"


class FileService:
    def __init__(
        self,
        store: MetadataStore,
        storage: LocalBlobStorage,
        rate_limiter: RateLimiter,
        ttl: timedelta,
        share_url_prefix: str,
    ):
        self.store = store
        self.storage = storage
        self.rate_limiter = rate_limiter
        self.ttl = ttl
        self.share_url_prefix = share_url_prefix.rstrip('/')

    def share_url(self, file_id: str) -> str:
        return f"{self.share_url_prefix}/{file_id}"

    def upload_file(
        self,
        original_name: str,
        data: bytes,
        content_type: Optional[str],
        user_id: Optional[str] = None,
        security_mode: bool = False,
    ) -> FileRecord:
        """
        Store the bytes and register a record for them.

        Args:
            original_name: Client-supplied file name
            data: File contents
            content_type: MIME type (octet-stream when empty)
            user_id: Uploader's session ID; a new one is generated when absent
            security_mode: Whether extra verification was requested

        Returns:
            The created FileRecord

        Raises:
            RateLimitedError: If the session has exhausted its upload window
            UpstreamFailureError: If the bytes could not be stored
            DuplicateIdError: If no free ID could be allocated
        """
        user_id = user_id or generate_session_id()

        verdict = self.rate_limiter.check_rate_limit(user_id)
        if not verdict.allowed:
            raise RateLimitedError("Too many uploads, try again later", retry_after=verdict.retry_after)

        for attempt in range(1, MAX_ID_ATTEMPTS + 1):
            file_id = allocate_file_id(self.store.file_id_exists)
            filename = build_storage_filename(file_id, original_name)

            uploaded_at = self.store.clock()
            record = FileRecord(
                id=file_id,
                filename=filename,
                original_name=original_name,
                size=len(data),
                url=self.storage.url_for(filename),
                uploaded_at=uploaded_at,
                expires_at=uploaded_at + self.ttl,
                user_id=user_id,
                content_type=content_type or DEFAULT_MIME_TYPE,
                download_count=0,
                security_mode=security_mode,
            )

            # The ID is reserved before any bytes are written under its name.
            try:
                self.store.save_file_metadata(record)
            except DuplicateIdError:
                logger.warning(f"File ID {file_id} was taken during upload (attempt {attempt}/{MAX_ID_ATTEMPTS})")
                continue

            try:
                self.storage.upload(filename, data)
            except UpstreamFailureError:
                self.store.delete_file_metadata(file_id, user_id)
                raise

            logger.info(f"Uploaded file [file_id={file_id}] name={original_name!r} size={record.size}")
            return record

        raise DuplicateIdError(f"Could not register upload after {MAX_ID_ATTEMPTS} attempts")

    def get_file(self, file_id: str) -> FileRecord:
        record = self.store.get_file_by_id(file_id)
        if record is None:
            raise NotFoundError(f"File {file_id} not found")
        return record

    def open_download(self, file_id: str) -> Tuple[FileRecord, Iterator[bytes]]:
        """
        Resolve a share ID to its record and a byte stream.

        The download counter is incremented once the stream has been opened.

        Raises:
            NotFoundError: If the ID is unknown or expired
            UpstreamFailureError: If the stored bytes cannot be read
        """
        record = self.get_file(file_id)
        stream = self.storage.open_stream(record.url)
        record = self.store.update_download_count(file_id) or record
        logger.info(f"Serving download [file_id={file_id}] downloads={record.download_count}")
        return record, stream

    def delete_file(self, file_id: str, session_id: str) -> bool:
        """
        Delete a record and its bytes when the session owns it.

        Raises:
            NotFoundError: If the ID is unknown or expired
        """
        record = self.get_file(file_id)
        if not self.store.delete_file_metadata(file_id, session_id):
            return False

        self.purge_blob(record)
        return True

    def purge_blob(self, record: FileRecord) -> None:
        """Remove the stored bytes behind a record that left the store."""
        try:
            self.storage.delete(record.url)
        except Exception as e:
            logger.warning(f"Failed to delete stored bytes [file_id={record.id}]: {e}")

    def statistics(self) -> UploadStatistics:
        return get_upload_statistics(self.store)

"""Upload workflow: rate limit, send, record locally."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from common.exceptions import DuplicateIdError, RateLimitedError, UpstreamFailureError
from common.logging_config import get_logger
from common.types import FileRecord
from common.utils import utc_now
from lifecycle.metadata_store import MetadataStore
from lifecycle.rate_limiter import RateLimiter
from lifecycle.session import SessionManager
from lifecycle.settings import UserSettings
from cli.server_client import ShareServerClient

logger = get_logger(__name__)


@dataclass
class BulkUploadProgress:
    """Tally of a batch upload."""
    total: int
    completed: int = 0
    failed: int = 0
    current_file: str = ""
    uploaded: List[FileRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


ProgressCallback = Callable[[BulkUploadProgress], None]


class Uploader:
    """
    Sends files to the share server and records them in the local store.

    The rate limit is checked once per batch, before any request is made.
    A failure on one file is counted and the batch moves on.
    """

    def __init__(
        self,
        store: MetadataStore,
        rate_limiter: RateLimiter,
        session: SessionManager,
        settings: UserSettings,
        client: ShareServerClient,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.rate_limiter = rate_limiter
        self.session = session
        self.settings = settings
        self.client = client
        self.clock = clock

    def upload_files(
        self,
        paths: Sequence[Path],
        on_progress: Optional[ProgressCallback] = None,
    ) -> BulkUploadProgress:
        """
        Upload a batch of files.

        Args:
            paths: Files to upload
            on_progress: Called after each file with the running tally

        Returns:
            Final BulkUploadProgress

        Raises:
            RateLimitedError: If the session may not upload right now
        """
        session_id = self.session.get_user_session_id()

        verdict = self.rate_limiter.check_rate_limit(session_id)
        if not verdict.allowed:
            raise RateLimitedError("Upload limit reached, try again shortly", retry_after=verdict.retry_after)

        ttl = timedelta(minutes=self.settings.get_auto_delete_minutes())
        security_mode = self.settings.get_security_settings().encryption_enabled
        progress = BulkUploadProgress(total=len(paths))

        for path in paths:
            path = Path(path)
            progress.current_file = path.name

            try:
                record = self._upload_one(path, session_id, ttl, security_mode)
            except (UpstreamFailureError, RateLimitedError, DuplicateIdError, OSError, ValueError) as e:
                logger.error(f"Upload failed for {path}: {e}")
                progress.failed += 1
                progress.errors.append(f"{path.name}: {e}")
            else:
                progress.completed += 1
                progress.uploaded.append(record)

            if on_progress is not None:
                on_progress(progress)

        logger.info(
            f"Upload batch finished: {progress.completed} completed, {progress.failed} failed of {progress.total}"
        )
        return progress

    def _upload_one(self, path: Path, session_id: str, ttl: timedelta, security_mode: bool) -> FileRecord:
        if not path.is_file():
            raise OSError(f"No such file: {path}")

        response = self.client.upload_file(path, session_id, security_mode)

        # The local lifetime follows this client's auto-delete preference.
        uploaded_at = self.clock()
        record = FileRecord.from_dict({
            **response,
            "uploadedAt": response.get("uploadedAt") or uploaded_at.isoformat(),
            "expiresAt": None,
            "userId": session_id,
        }, default_ttl=ttl)

        return self.store.save_file_metadata(record)

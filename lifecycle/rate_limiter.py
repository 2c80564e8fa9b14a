"""Sliding window upload rate limiter keyed by session."""

import json
import threading
from datetime import datetime, timedelta
from typing import Callable, List

from common.constants import RATE_LIMIT_KEY_PREFIX, RATE_LIMIT_MAX_UPLOADS, RATE_LIMIT_WINDOW_SECONDS
from common.exceptions import PersistenceCorruptError
from common.logging_config import get_logger
from common.types import RateLimitResult
from common.utils import utc_now
from lifecycle.local_storage import LocalStorage

logger = get_logger(__name__)


class RateLimiter:
    """
    Sliding window log limiter.

    Each session keeps the timestamps of its accepted uploads in local
    storage. An attempt is allowed while fewer than `max_uploads` timestamps
    fall inside the trailing window; an allowed attempt is recorded, a
    rejected one leaves no trace.
    """

    def __init__(
        self,
        storage: LocalStorage,
        max_uploads: int = RATE_LIMIT_MAX_UPLOADS,
        window: timedelta = timedelta(seconds=RATE_LIMIT_WINDOW_SECONDS),
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            storage: Backend holding the per-session timestamp logs
            max_uploads: Uploads allowed inside one window
            window: Length of the sliding window
            clock: Source of the current time
        """
        if max_uploads < 1:
            raise ValueError("max_uploads must be at least 1")
        if window <= timedelta(0):
            raise ValueError("window must be positive")

        self.storage = storage
        self.max_uploads = max_uploads
        self.window = window
        self.clock = clock
        self._lock = threading.Lock()

    def _key(self, session_id: str) -> str:
        return f"{RATE_LIMIT_KEY_PREFIX}{session_id}"

    def _read_log(self, session_id: str) -> List[float]:
        raw = self.storage.get_item(self._key(session_id))
        if raw is None:
            return []

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise PersistenceCorruptError(f"expected a list, got {type(data).__name__}")
            return [float(ts) for ts in data]
        except (json.JSONDecodeError, TypeError, ValueError, PersistenceCorruptError) as e:
            logger.warning(f"Discarding unreadable rate limit log: {e}")
            return []

    def check_rate_limit(self, session_id: str) -> RateLimitResult:
        """
        Decide whether the session may upload now, recording the attempt if so.

        Call once per upload attempt, before any network request is issued.

        Args:
            session_id: Session performing the upload

        Returns:
            RateLimitResult; retry_after is set when the attempt is rejected
        """
        with self._lock:
            now_ms = self.clock().timestamp() * 1000
            window_ms = self.window.total_seconds() * 1000
            recent = [ts for ts in self._read_log(session_id) if ts > now_ms - window_ms]

            if len(recent) >= self.max_uploads:
                retry_after = timedelta(milliseconds=max(0.0, min(recent) + window_ms - now_ms))
                logger.info(
                    f"Upload rejected by rate limit ({len(recent)}/{self.max_uploads} in window), "
                    f"retry in {retry_after.total_seconds():.1f}s"
                )
                return RateLimitResult(allowed=False, retry_after=retry_after)

            recent.append(now_ms)
            self.storage.set_item(self._key(session_id), json.dumps(recent))
            return RateLimitResult(allowed=True)

    def prune(self) -> int:
        """
        Drop the logs of sessions with no attempt left inside the window.

        Returns:
            Number of session logs removed
        """
        removed = 0
        with self._lock:
            cutoff_ms = (self.clock().timestamp() - self.window.total_seconds()) * 1000
            for key in self.storage.keys():
                if not key.startswith(RATE_LIMIT_KEY_PREFIX):
                    continue
                session_id = key[len(RATE_LIMIT_KEY_PREFIX):]
                if not any(ts > cutoff_ms for ts in self._read_log(session_id)):
                    self.storage.remove_item(key)
                    removed += 1

        if removed:
            logger.debug(f"Pruned {removed} idle rate limit log(s)")
        return removed

"""Background sweep that removes expired records from the metadata store."""

import asyncio
from datetime import timedelta
from typing import Callable, List, Optional

from common.constants import DEFAULT_CLEANUP_INTERVAL_MINUTES, DEFAULT_TTL_MINUTES
from common.logging_config import get_logger
from common.types import FileRecord
from lifecycle.metadata_store import MetadataStore
from lifecycle.rate_limiter import RateLimiter

logger = get_logger(__name__)

ExpiredCallback = Callable[[FileRecord], None]


class CleanupHandle:
    """
    A running sweep schedule, returned by CleanupScheduler.start_auto_cleanup().
    """

    def __init__(self, task: asyncio.Task, interval_minutes: float, ttl_minutes: float):
        self._task = task
        self.interval_minutes = interval_minutes
        self.ttl_minutes = ttl_minutes
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped or self._task.done()

    async def stop(self) -> None:
        """
        Prevent any further ticks.

        A sweep never awaits, so cancellation can only land while the task
        sleeps between ticks; a sweep in progress always finishes.
        """
        if self._stopped:
            return

        self._stopped = True
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass


class CleanupScheduler:
    """
    Periodically deletes expired records.

    The sweep only removes metadata. Stored bytes are left to the storage
    collaborator, which can subscribe through `on_expired`.
    """

    def __init__(
        self,
        store: MetadataStore,
        on_expired: Optional[ExpiredCallback] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        """
        Args:
            store: Store to sweep
            on_expired: Called once per removed record after each sweep
            rate_limiter: Limiter whose idle session logs are pruned on each sweep
        """
        self.store = store
        self.on_expired = on_expired
        self.rate_limiter = rate_limiter
        self._handle: Optional[CleanupHandle] = None

    @property
    def running(self) -> bool:
        return self._handle is not None and not self._handle.stopped

    def run_sweep(self, ttl_minutes: float = DEFAULT_TTL_MINUTES) -> List[FileRecord]:
        """
        Execute one sweep.

        Args:
            ttl_minutes: Lifetime for persisted entries that carry no expiresAt

        Returns:
            Records removed by this sweep
        """
        removed = self.store.remove_expired(fallback_ttl=timedelta(minutes=ttl_minutes))
        if self.rate_limiter is not None:
            self.rate_limiter.prune()

        if not removed:
            logger.debug("Cleanup sweep found no expired files")
            return removed

        logger.info(f"Cleanup sweep removed {len(removed)} expired file(s): {', '.join(r.id for r in removed)}")

        if self.on_expired is not None:
            for record in removed:
                try:
                    self.on_expired(record)
                except Exception as e:
                    logger.error(f"Expired-file callback failed [file_id={record.id}]: {e}", exc_info=True)

        return removed

    async def start_auto_cleanup(
        self,
        interval_minutes: float = DEFAULT_CLEANUP_INTERVAL_MINUTES,
        ttl_minutes: float = DEFAULT_TTL_MINUTES,
    ) -> CleanupHandle:
        """
        Start the recurring sweep, replacing any schedule already running.

        The first sweep runs as soon as the task is scheduled, then one per
        interval.

        Args:
            interval_minutes: Time between sweeps
            ttl_minutes: Lifetime for persisted entries that carry no expiresAt

        Returns:
            Handle whose stop() ends this schedule
        """
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")

        if self._handle is not None:
            logger.info("Replacing running cleanup schedule")
            await self._handle.stop()

        task = asyncio.create_task(self._run(interval_minutes * 60, ttl_minutes))
        self._handle = CleanupHandle(task, interval_minutes, ttl_minutes)
        logger.info(f"Started auto cleanup (interval: {interval_minutes}m, ttl: {ttl_minutes}m)")
        return self._handle

    async def stop(self) -> None:
        """Stop the current schedule, if any."""
        if self._handle is None:
            return

        await self._handle.stop()
        self._handle = None
        logger.info("Stopped auto cleanup")

    async def _run(self, interval_seconds: float, ttl_minutes: float) -> None:
        """Main loop for the sweep task."""
        while True:
            try:
                self.run_sweep(ttl_minutes)
            except Exception as e:
                logger.error(f"Error in cleanup sweep: {e}", exc_info=True)

            await asyncio.sleep(interval_seconds)

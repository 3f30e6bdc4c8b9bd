"""Periodic cleanup of expired cache records held by the remote service."""

import asyncio
from typing import Optional, Protocol

import structlog

from content_generation.models.content import CleanupResult
from content_generation.telemetry.metrics import GenerationMetrics

logger = structlog.get_logger()


class CacheCleanupBackend(Protocol):
    """Deletes expired cache records in bulk and reports how many went."""

    async def cleanup_expired(self) -> int: ...


class CleanupHandle:
    """Cancelable handle for a scheduled cleanup loop."""

    def __init__(self, interval_minutes: float):
        self.interval_minutes = interval_minutes
        self.runs = 0
        self.last_result: Optional[CleanupResult] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        self.cancel()
        if self._task:
            try:
                await self._task
            except asyncio.CancelledError:
                pass


class CacheJanitor:
    """Runs cleanup against a CacheCleanupBackend, once or on an interval."""

    def __init__(self, backend: CacheCleanupBackend, metrics: GenerationMetrics | None = None):
        self.backend = backend
        self.metrics = metrics
        self._cleaning_up = 0

    @property
    def is_cleaning_up(self) -> bool:
        return self._cleaning_up > 0

    async def cleanup(self) -> CleanupResult:
        """Run one cleanup. Failures are reported in the result, never raised."""
        self._cleaning_up += 1
        try:
            removed = await self.backend.cleanup_expired()
            removed = int(removed or 0)
            result = CleanupResult(
                success=True,
                message=f"Removed {removed} expired cache entries",
                entries_removed=removed,
            )
            logger.info("Cache cleanup completed", entries_removed=removed)
        except Exception as e:
            logger.error("Cache cleanup failed", error=str(e), error_type=type(e).__name__)
            result = CleanupResult(
                success=False,
                message=str(e) or "Failed to clean up expired cache entries",
            )
        finally:
            self._cleaning_up -= 1

        if self.metrics:
            self.metrics.record_cleanup(result.success)
        return result

    async def schedule_cleanup(self, interval_minutes: float) -> CleanupHandle:
        """Clean up now, then every ``interval_minutes`` until the handle is canceled."""
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")

        handle = CleanupHandle(interval_minutes)
        await self._run_once(handle)
        handle._task = asyncio.create_task(self._cleanup_loop(handle))
        logger.info("Cache cleanup scheduled", interval_minutes=interval_minutes)
        return handle

    async def _run_once(self, handle: CleanupHandle) -> None:
        handle.last_result = await self.cleanup()
        handle.runs += 1

    async def _cleanup_loop(self, handle: CleanupHandle) -> None:
        while True:
            await asyncio.sleep(handle.interval_minutes * 60)
            try:
                await self._run_once(handle)
            except Exception as e:
                logger.error("Scheduled cache cleanup error", error=str(e))

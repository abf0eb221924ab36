"""
Queue Maintenance

Background loop that returns lapsed claims to the queue and archives
old answered items.
"""

import asyncio
from typing import Optional

from crosscare.config.logging_config import get_logger
from crosscare.infrastructure.monitoring import capture_exception_with_context
from crosscare.services.queue.claim_manager import ClaimManager

logger = get_logger(__name__)


class QueueMaintenance:
    """
    Periodic sweep-then-archive loop.

    A failed pass is logged and the loop carries on with the next one.
    Cancelling between passes is always safe: each item change is one
    atomic write that either committed or did not.
    """

    def __init__(self, claim_manager: ClaimManager, interval_seconds: float = 60.0) -> None:
        self._claim_manager = claim_manager
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> tuple[int, int]:
        """One pass. Returns (claims swept, items archived)."""
        swept = await self._claim_manager.sweep_expired()
        archived = await self._claim_manager.archive_answered()
        return swept, archived

    async def run(self) -> None:
        """Run passes until cancelled."""
        logger.info("Queue maintenance started", interval_seconds=self._interval)
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    "Queue maintenance pass failed",
                    error_type=type(e).__name__,
                    error=str(e),
                    exc_info=True,
                )
                capture_exception_with_context(e, tags={"component": "queue_maintenance"})
            await asyncio.sleep(self._interval)

    def start(self) -> asyncio.Task:
        """Start the loop as a background task."""
        if not self.is_running:
            self._task = asyncio.create_task(self.run(), name="queue-maintenance")
        return self._task

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("Queue maintenance task had failed", error_type=type(e).__name__, error=str(e))
        logger.info("Queue maintenance stopped")

"""Cooperative shutdown signal shared by the indexer tasks."""
import asyncio

import structlog

logger = structlog.get_logger()


class GracefulShutdown:
    """Coordinates graceful shutdown across async tasks.

    The listening loop checks the signal once per poll iteration; work
    already in flight is never interrupted.

    Attributes:
        is_triggered: Whether shutdown has been triggered.
    """

    def __init__(self) -> None:
        """Initialize shutdown coordinator."""
        self._triggered = False
        self._event = asyncio.Event()

    @property
    def is_triggered(self) -> bool:
        """Check if shutdown has been triggered.

        Returns:
            True if shutdown signal received.
        """
        return self._triggered

    def trigger(self) -> None:
        """Signal all waiting tasks to begin shutdown.

        Idempotent - calling multiple times has no additional effect.
        """
        if self._triggered:
            return
        logger.info("shutdown_triggered")
        self._triggered = True
        self._event.set()

    async def wait_for_trigger(self) -> None:
        """Wait indefinitely for shutdown signal."""
        await self._event.wait()

    async def sleep(self, seconds: float) -> bool:
        """Sleep for a fixed interval, waking early on shutdown.

        Args:
            seconds: Interval to wait.

        Returns:
            True if shutdown was triggered before or during the wait.
        """
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True


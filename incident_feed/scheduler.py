"""Periodic re-fetch of nearby incidents."""

import asyncio
from typing import Awaitable, Callable, Optional
import logging

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Awaits ``callback`` every ``interval_seconds`` until stopped."""

    def __init__(self, interval_seconds: float, callback: Callable[[], Awaitable[object]]):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = interval_seconds
        self.callback = callback
        self.running = False
        self.runs = 0
        self._task: Optional[asyncio.Task] = None

    async def start(self):
        """Start the refresh loop."""
        if self.running:
            return
        self.running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"Refresh scheduler started (every {self.interval_seconds:g}s)")

    async def stop(self):
        """Stop the loop and clear its timer."""
        self.running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Refresh scheduler stopped")

    async def _run_loop(self):
        while self.running:
            try:
                await asyncio.sleep(self.interval_seconds)
                if not self.running:
                    break
                await self.callback()
                self.runs += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Refresh cycle failed: {e}")

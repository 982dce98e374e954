"""
Poll Scheduler
Runs a poll cycle immediately, then at a fixed rate until stopped
"""

import asyncio
from typing import Optional

import structlog

from shared.schemas.view_event import PollResult

from .poller import ViewEventPoller

logger = structlog.get_logger()


class PollScheduler:
    """Fixed-rate driver for ViewEventPoller; cycles never overlap"""

    def __init__(self, poller: ViewEventPoller, interval_seconds: float):
        self.poller = poller
        self.interval_seconds = interval_seconds
        self.cycles = 0
        self.failures = 0
        self.lock = asyncio.Lock()
        self._stop = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self):
        """Request shutdown; an in-flight cycle is allowed to finish"""
        if not self._stop.is_set():
            logger.info("Stopping scheduler")
            self._stop.set()

    async def run_cycle(self) -> Optional[PollResult]:
        """Run one cycle, logging rather than raising cycle failures"""
        self.cycles += 1
        try:
            async with self.lock:
                return await self.poller.poll_once()
        except Exception as e:
            self.failures += 1
            logger.error("Scheduled poll failed", cycle=self.cycles, error=str(e))
            return None

    async def run(self):
        """Poll until stop() is called"""
        loop = asyncio.get_running_loop()
        next_run = loop.time()
        logger.info("Scheduler started", interval_seconds=self.interval_seconds)

        while not self._stop.is_set():
            await self.run_cycle()

            next_run += self.interval_seconds
            delay = next_run - loop.time()
            if delay <= 0:
                # Cycle overran the interval; start the next one now
                logger.warning("Poll cycle overran interval", overrun_seconds=round(-delay, 1))
                next_run = loop.time()
                delay = 0

            if self._stop.is_set():
                break
            logger.info("Scheduling next poll", in_seconds=round(delay, 1))
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

        logger.info("Scheduler stopped", cycles=self.cycles, failures=self.failures)

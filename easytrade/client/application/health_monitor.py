"""
Application layer: Periodic connection health checks.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable


class HealthMonitor:
    """Runs a health check coroutine on a fixed interval.

    The monitor only runs while the session is healthy; the guard starts and
    stops it on state transitions so it never races the recovery loop.
    """

    def __init__(
        self,
        check: Callable[[], Awaitable[None]],
        interval: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.check = check
        self.interval = interval
        self.sleep = sleep
        self.logger = logging.getLogger(__name__)
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def run(self) -> None:
        """Run the monitor loop until stopped."""
        while self._running:
            await self.sleep(self.interval)
            if not self._running:
                break
            try:
                await self.check()
            except Exception:
                self.logger.exception("Connection health check failed")

    def start(self) -> None:
        """Start the monitor as a background task on the running loop."""
        if self._task and not self._task.done():
            self.logger.debug("Health monitor is already running")
            return
        self._running = True
        self._task = asyncio.get_running_loop().create_task(self.run())
        self.logger.debug("Health monitor started, interval %ss", self.interval)

    def stop(self) -> None:
        """Stop the monitor; a check already in progress finishes on its own."""
        self._running = False
        task, self._task = self._task, None
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()
        self.logger.debug("Health monitor stopped")

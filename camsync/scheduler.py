from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import Optional

from camsync.service import SyncService

logger = logging.getLogger(__name__)


class PeriodicRefresher:
    """Triggers ``service.refresh(scheduled=True)`` every ``interval`` seconds."""

    def __init__(self, service: SyncService, interval: float):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._service = service
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _loop(self) -> None:
        while True:
            self.ticks += 1
            started = time.monotonic()
            try:
                await self._service.refresh(scheduled=True)
            except Exception:
                logger.exception("Scheduled sync cycle raised")
            await asyncio.sleep(self.next_delay(time.monotonic() - started))

    def next_delay(self, elapsed: float) -> float:
        """Seconds to wait so cycles start every ``interval`` seconds."""
        return max(0.0, self.interval - elapsed)

    def start(self) -> None:
        if self.running:
            return
        logger.info(f"Starting camera sync every {self.interval:.0f}s")
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

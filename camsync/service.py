from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional

from camsync.cache import CacheKey, TTLCache
from camsync.config import Settings
from camsync.endpoints import EndpointRegistry
from camsync.fetcher import BoundedFetcher
from camsync.schemas import SyncResult
from camsync.sync import Fetcher, SyncOrchestrator

logger = logging.getLogger(__name__)


class SyncService:
    """Holds the current camera snapshot and runs at most one cycle at a time.

    A scheduled trigger that arrives while a cycle is running is dropped.
    Any other caller joins the running cycle and receives its result.
    """

    def __init__(self, orchestrator: SyncOrchestrator, cache: TTLCache, cache_key: CacheKey):
        self._orchestrator = orchestrator
        self._cache = cache
        self._cache_key = cache_key
        self._inflight: Optional[asyncio.Task] = None
        self._last: Optional[SyncResult] = None
        self.cycles_started = 0
        self.triggers_dropped = 0

    @property
    def orchestrator(self) -> SyncOrchestrator:
        return self._orchestrator

    @property
    def last_result(self) -> Optional[SyncResult]:
        return self._last

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def _run(self) -> SyncResult:
        result = await self._orchestrator.run_cycle()
        self._last = result
        self._cache.set(self._cache_key, result)
        return result

    async def refresh(self, scheduled: bool = False) -> Optional[SyncResult]:
        """Run a sync cycle, honouring single-flight.

        Returns None only for a scheduled trigger dropped because a cycle was
        already running.
        """
        if self.in_flight:
            if scheduled:
                self.triggers_dropped += 1
                logger.info("Sync cycle already in flight; dropping scheduled trigger")
                return None
            logger.debug("Joining in-flight sync cycle")
        else:
            self.cycles_started += 1
            self._inflight = asyncio.create_task(self._run())
        # shielded so a cancelled caller does not cancel the shared cycle
        return await asyncio.shield(self._inflight)

    async def close(self) -> None:
        """Cancel a running cycle and wait for it to release its connection."""
        task, self._inflight = self._inflight, None
        if task is None or task.done():
            return
        logger.info("Cancelling in-flight sync cycle")
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def current(self) -> SyncResult:
        """Return the cached snapshot, running a cycle when it is missing or stale."""
        cached = self._cache.get(self._cache_key)
        if cached is not None:
            return cached
        return await self.refresh()


def build_service(settings: Settings, fetcher: Optional[Fetcher] = None) -> SyncService:
    registry = EndpointRegistry(settings.endpoints)
    if fetcher is None:
        fetcher = BoundedFetcher(timeout=settings.timeout_seconds, user_agent=settings.user_agent)
    orchestrator = SyncOrchestrator(
        registry=registry,
        fetcher=fetcher,
        feed_url=settings.feed_url,
        base_url=settings.base_url,
        image_path_prefix=settings.image_path_prefix,
        default_image_path=settings.default_image_path,
    )
    cache = TTLCache(ttl=settings.cache_ttl_seconds, max_entries=settings.cache_max_entries)
    return SyncService(orchestrator, cache, CacheKey(settings.feed_url, registry.names))

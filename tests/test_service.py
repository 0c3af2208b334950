"""Tests for single-flight refresh, the TTL cache and the scheduler."""
import asyncio

import pytest

from camsync.cache import CacheKey, TTLCache
from camsync.config import Settings
from camsync.scheduler import PeriodicRefresher
from camsync.service import build_service

from tests.conftest import FEED_URL, NESTED_FEED, FakeFetcher, GatedFetcher


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _settings(endpoints, **overrides):
    values = {"feed_url": FEED_URL, "endpoints": endpoints, "refresh_interval_seconds": 0}
    values.update(overrides)
    return Settings(**values)


class TestTTLCache:
    def test_get_set(self):
        cache = TTLCache(ttl=10)
        cache.set("k", 1)
        assert cache.get("k") == 1
        assert cache.get("missing") is None

    def test_expiry(self):
        clock = FakeClock()
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("k", 1)
        clock.now = 9.9
        assert cache.get("k") == 1
        clock.now = 10.0
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_lru_eviction(self):
        cache = TTLCache(ttl=10, max_entries=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)
        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get("c") == 3

    def test_composite_key(self):
        cache = TTLCache(ttl=10)
        cache.set(CacheKey("u", ("a", "b")), "x")
        assert cache.get(CacheKey("u", ("a", "b"))) == "x"
        assert cache.get(CacheKey("u", ("b", "a"))) is None

    def test_invalidate_and_clear(self):
        cache = TTLCache(ttl=10)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.invalidate("a")
        assert cache.get("a") is None
        cache.clear()
        assert len(cache) == 0


class TestSyncService:
    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_cycle(self, endpoints):
        fetcher = GatedFetcher({"alpha.test": NESTED_FEED})
        service = build_service(_settings(endpoints), fetcher=fetcher)

        first = asyncio.create_task(service.refresh())
        second = asyncio.create_task(service.refresh())
        await asyncio.sleep(0)
        assert service.in_flight
        fetcher.release.set()
        r1, r2 = await asyncio.gather(first, second)

        assert r1 is r2
        assert service.cycles_started == 1
        assert len(fetcher.calls) == 1

    @pytest.mark.asyncio
    async def test_scheduled_trigger_dropped_while_in_flight(self, endpoints):
        fetcher = GatedFetcher({"alpha.test": NESTED_FEED})
        service = build_service(_settings(endpoints), fetcher=fetcher)

        running = asyncio.create_task(service.refresh())
        await asyncio.sleep(0)
        assert await service.refresh(scheduled=True) is None
        assert service.triggers_dropped == 1

        fetcher.release.set()
        result = await running
        assert result.outcome == "live"
        assert service.cycles_started == 1

    @pytest.mark.asyncio
    async def test_sequential_refreshes_run_new_cycles(self, endpoints):
        fetcher = FakeFetcher({"alpha.test": NESTED_FEED})
        service = build_service(_settings(endpoints), fetcher=fetcher)
        first = await service.refresh()
        second = await service.refresh()
        assert first is not second
        assert service.cycles_started == 2
        assert service.last_result is second

    @pytest.mark.asyncio
    async def test_current_served_from_cache(self, endpoints):
        fetcher = FakeFetcher({"alpha.test": NESTED_FEED})
        service = build_service(_settings(endpoints), fetcher=fetcher)
        first = await service.current()
        second = await service.current()
        assert first is second
        assert len(fetcher.calls) == 1

    @pytest.mark.asyncio
    async def test_zero_ttl_always_refreshes(self, endpoints):
        fetcher = FakeFetcher({"alpha.test": NESTED_FEED})
        service = build_service(_settings(endpoints, cache_ttl_seconds=0), fetcher=fetcher)
        await service.current()
        await service.current()
        assert len(fetcher.calls) == 2

    @pytest.mark.asyncio
    async def test_fallback_result_is_non_empty(self, endpoints):
        service = build_service(_settings(endpoints), fetcher=FakeFetcher())
        result = await service.current()
        assert result.outcome == "fallback"
        assert result.cameras

    @pytest.mark.asyncio
    async def test_close_cancels_inflight_cycle(self, endpoints):
        fetcher = GatedFetcher({"alpha.test": NESTED_FEED})
        service = build_service(_settings(endpoints), fetcher=fetcher)
        refresher = PeriodicRefresher(service, interval=10)
        refresher.start()
        await asyncio.sleep(0.01)
        assert service.in_flight

        await refresher.stop()
        # the cycle is shielded from the scheduler's cancellation
        assert service.in_flight

        await service.close()
        assert not service.in_flight
        assert fetcher.calls == []
        assert service.last_result is None

    @pytest.mark.asyncio
    async def test_close_when_idle(self, endpoints):
        service = build_service(_settings(endpoints), fetcher=FakeFetcher({"alpha.test": NESTED_FEED}))
        await service.close()
        await service.refresh()
        await service.close()
        assert service.last_result.outcome == "live"


class TestPeriodicRefresher:
    @pytest.mark.asyncio
    async def test_runs_cycles_until_stopped(self, endpoints):
        fetcher = FakeFetcher({"alpha.test": NESTED_FEED})
        service = build_service(_settings(endpoints), fetcher=fetcher)
        refresher = PeriodicRefresher(service, interval=0.01)
        refresher.start()
        await asyncio.sleep(0.1)
        await refresher.stop()
        assert not refresher.running
        assert refresher.ticks >= 2
        assert service.last_result is not None
        calls = len(fetcher.calls)
        await asyncio.sleep(0.05)
        assert len(fetcher.calls) == calls

    def test_rejects_non_positive_interval(self, endpoints):
        service = build_service(_settings(endpoints), fetcher=FakeFetcher())
        with pytest.raises(ValueError):
            PeriodicRefresher(service, interval=0)

    def test_next_delay_subtracts_cycle_time(self, endpoints):
        service = build_service(_settings(endpoints), fetcher=FakeFetcher())
        refresher = PeriodicRefresher(service, interval=1)
        assert refresher.next_delay(0.3) == pytest.approx(0.7)
        assert refresher.next_delay(0) == 1
        assert refresher.next_delay(2) == 0

    @pytest.mark.asyncio
    async def test_slow_cycle_keeps_start_cadence(self, endpoints):
        class SlowFetcher(FakeFetcher):
            async def fetch(self, address):
                await asyncio.sleep(0.05)
                return await super().fetch(address)

        service = build_service(_settings(endpoints), fetcher=SlowFetcher({"alpha.test": NESTED_FEED}))
        refresher = PeriodicRefresher(service, interval=0.05)
        refresher.start()
        await asyncio.sleep(0.32)
        await refresher.stop()
        # back-to-back cycles of ~0.05s each; sleeping a full interval after each would halve this
        assert refresher.ticks >= 5

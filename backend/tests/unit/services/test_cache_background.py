"""
Unit tests for cache background services.

Tests the periodic sweeper, the critical-data warmer and the default
namespace catalogue.
"""

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from alumni_registry.core.config import Settings
from alumni_registry.domain.cache.exceptions import NamespaceNotFoundError
from alumni_registry.services.cache.maintenance import CacheSweeper
from alumni_registry.services.cache.namespaces import build_cache, default_policies
from alumni_registry.services.cache.warmup import CacheWarmer


class TestCacheSweeper:
    """Test CacheSweeper loop."""

    def test_invalid_interval(self, cache):
        with pytest.raises(ValueError, match="must be positive"):
            CacheSweeper(cache, interval_seconds=0)

    def test_run_once(self, cache, clock):
        cache.set("verify", "a", 1)
        clock.advance(61)
        sweeper = CacheSweeper(cache, interval_seconds=300)

        assert sweeper.run_once() == 1
        assert sweeper.run_once() == 0

    @pytest.mark.asyncio
    async def test_loop_sweeps_periodically(self, cache, clock):
        cache.set("verify", "a", 1)
        clock.advance(61)
        sweeper = CacheSweeper(cache, interval_seconds=0.01)

        await sweeper.start()
        assert sweeper.running
        await asyncio.sleep(0.05)
        await sweeper.stop()

        assert not sweeper.running
        assert cache.stats("verify").entries == 0

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, cache):
        sweeper = CacheSweeper(cache, interval_seconds=60)
        await sweeper.start()
        task = sweeper._sweep_task
        await sweeper.start()
        assert sweeper._sweep_task is task
        await sweeper.stop()
        await sweeper.stop()

    @pytest.mark.asyncio
    async def test_loop_survives_sweep_errors(self, cache):
        sweeper = CacheSweeper(cache, interval_seconds=0.01)
        with patch.object(
            cache, "sweep", side_effect=[RuntimeError("boom"), 0, 0, 0, 0, 0, 0, 0, 0]
        ) as mock_sweep:
            await sweeper.start()
            await asyncio.sleep(0.05)
            assert sweeper.running
            await sweeper.stop()

        assert mock_sweep.call_count >= 2


class TestCacheWarmer:
    """Test CacheWarmer preloading."""

    @pytest.mark.asyncio
    async def test_warm_stores_results(self, cache, make_producer):
        warmer = CacheWarmer(cache)
        departments = make_producer([{"id": 1, "name": "Computer Science"}])
        stats = make_producer({"totalStudents": 1200})
        warmer.register("students", "departments", departments)
        warmer.register("verify", "stats", stats)

        report = await warmer.warm()

        assert report.success
        assert report.loaded == ["students:departments", "verify:stats"]
        # Subsequent reads are served from cache
        assert await cache.get("students", "departments", departments) == [
            {"id": 1, "name": "Computer Science"}
        ]
        assert departments.calls == 1

    @pytest.mark.asyncio
    async def test_failed_loader_does_not_abort_others(self, cache, make_producer):
        warmer = CacheWarmer(cache)
        warmer.register("students", "broken", make_producer(ConnectionError("down")))
        warmer.register("students", "ok", make_producer("value"))

        report = await warmer.warm()

        assert not report.success
        assert report.failed == ["students:broken"]
        assert report.loaded == ["students:ok"]
        assert cache.peek("students", "broken") is None

    def test_register_unknown_namespace(self, cache, make_producer):
        warmer = CacheWarmer(cache)
        with pytest.raises(NamespaceNotFoundError):
            warmer.register("reports", "k", make_producer(1))

    @pytest.mark.asyncio
    async def test_warm_without_loaders(self, cache):
        report = await CacheWarmer(cache).warm()
        assert report.loaded == [] and report.failed == []

    @pytest.mark.asyncio
    async def test_periodic_warmup(self, cache, make_producer):
        producer = make_producer("v")
        warmer = CacheWarmer(cache, interval_seconds=0.01)
        warmer.register("students", "k", producer)

        await warmer.start()
        await asyncio.sleep(0.05)
        await warmer.stop()

        assert producer.calls >= 2

    @pytest.mark.asyncio
    async def test_start_without_interval_warms_once(self, cache, make_producer):
        producer = make_producer("v")
        warmer = CacheWarmer(cache)
        warmer.register("students", "k", producer)

        await warmer.start()
        await warmer.stop()

        assert producer.calls == 1
        assert warmer._warmup_task is None


class TestDefaultNamespaces:
    """Test namespace catalogue built from settings."""

    @pytest.fixture
    def settings(self):
        return Settings(ENVIRONMENT="test")

    def test_default_policies(self, settings):
        policies = default_policies(settings)

        assert set(policies) == {
            "users",
            "students",
            "dashboard",
            "audit",
            "academic",
            "verify",
        }
        assert policies["users"].ttl_seconds == 900
        assert policies["users"].stale_window_seconds == 300
        assert policies["users"].max_entries == 1000
        assert policies["academic"].ttl_seconds == 3600
        assert policies["verify"].stale_window_seconds == 0

    def test_policies_follow_settings(self):
        settings = Settings(
            ENVIRONMENT="test",
            CACHE_STUDENTS_TTL_SECONDS=30,
            CACHE_STUDENTS_STALE_SECONDS=5,
            CACHE_STUDENTS_MAX_ENTRIES=7,
        )
        policy = default_policies(settings)["students"]
        assert (policy.ttl_seconds, policy.stale_window_seconds, policy.max_entries) == (
            30,
            5,
            7,
        )

    def test_build_cache(self, settings):
        clock = MagicMock(return_value=50.0)
        cache = build_cache(settings, clock=clock)

        assert len(cache.namespaces()) == 6
        assert cache.deduplicate_misses is True
        cache.set("users", "admin@example.edu", {"id": 1})
        assert cache.stats("users").entries == 1
        clock.assert_called()

    def test_build_cache_without_deduplication(self):
        settings = Settings(ENVIRONMENT="test", CACHE_DEDUPLICATE_MISSES=False)
        assert build_cache(settings).deduplicate_misses is False

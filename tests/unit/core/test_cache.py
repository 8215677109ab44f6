"""
Unit Tests for Cache Utilities
Tests for acdocs/core/cache.py
"""

import asyncio

import pytest
from unittest.mock import AsyncMock

from acdocs.core.cache import CacheManager


@pytest.fixture
def cache_manager():
    """Create a fresh cache manager for each test"""
    return CacheManager()


class TestCacheManager:
    """Test CacheManager class"""

    @pytest.mark.asyncio
    async def test_set_and_get(self, cache_manager):
        key = ("documents", "detail", "d1")
        await cache_manager.set(key, {"id": "d1"})
        assert await cache_manager.get(key) == {"id": "d1"}

    @pytest.mark.asyncio
    async def test_get_nonexistent_key_returns_none(self, cache_manager):
        assert await cache_manager.get(("nothing",)) is None

    @pytest.mark.asyncio
    async def test_zero_ttl_is_immediately_stale(self, cache_manager):
        await cache_manager.set(("users", "list"), ["u1"], ttl=0)
        assert await cache_manager.get(("users", "list")) is None

    @pytest.mark.asyncio
    async def test_delete(self, cache_manager):
        await cache_manager.set(("k",), 1)
        assert await cache_manager.delete(("k",)) is True
        assert await cache_manager.delete(("k",)) is False
        assert await cache_manager.get(("k",)) is None

    @pytest.mark.asyncio
    async def test_invalidate_by_prefix(self, cache_manager):
        await cache_manager.set(("documents", "list"), [])
        await cache_manager.set(("documents", "detail", "d1"), {"id": "d1"})
        await cache_manager.set(("documentsX",), "other root")
        await cache_manager.set(("categories", "list"), [])

        removed = await cache_manager.invalidate(("documents",))

        assert removed == 2
        assert await cache_manager.get(("documents", "list")) is None
        assert await cache_manager.get(("documentsX",)) == "other root"
        assert await cache_manager.get(("categories", "list")) == []

    @pytest.mark.asyncio
    async def test_get_or_load_loads_once(self, cache_manager):
        loader = AsyncMock(return_value=["a", "b"])

        first = await cache_manager.get_or_load(("groups", "list"), loader)
        second = await cache_manager.get_or_load(("groups", "list"), loader)

        assert first == second == ["a", "b"]
        loader.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_or_load_caches_empty_lists(self, cache_manager):
        loader = AsyncMock(return_value=[])
        await cache_manager.get_or_load(("groups", "list"), loader)
        await cache_manager.get_or_load(("groups", "list"), loader)
        loader.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_or_load_does_not_cache_none(self, cache_manager):
        loader = AsyncMock(return_value=None)
        assert await cache_manager.get_or_load(("users", "detail", "x"), loader) is None
        assert await cache_manager.get_or_load(("users", "detail", "x"), loader) is None
        assert loader.await_count == 2

    @pytest.mark.asyncio
    async def test_get_or_load_reloads_when_stale(self, cache_manager):
        loader = AsyncMock(side_effect=[1, 2])
        assert await cache_manager.get_or_load(("n",), loader, ttl=0) == 1
        assert await cache_manager.get_or_load(("n",), loader, ttl=0) == 2


    @pytest.mark.asyncio
    async def test_load_interrupted_by_invalidate_is_not_cached(self, cache_manager):
        key = ("documents", "list")
        started, release = asyncio.Event(), asyncio.Event()

        async def slow_loader():
            started.set()
            await release.wait()
            return ["d1", "d2"]

        pending = asyncio.create_task(cache_manager.get_or_load(key, slow_loader))
        await started.wait()
        await cache_manager.invalidate(("documents",))
        release.set()

        assert await pending == ["d1", "d2"]
        assert await cache_manager.get(key) is None

        fresh = AsyncMock(return_value=["d1"])
        assert await cache_manager.get_or_load(key, fresh) == ["d1"]
        fresh.assert_awaited_once()
        assert await cache_manager.get(key) == ["d1"]

    @pytest.mark.asyncio
    async def test_load_interrupted_by_clear_is_not_cached(self, cache_manager):
        started, release = asyncio.Event(), asyncio.Event()

        async def slow_loader():
            started.set()
            await release.wait()
            return 1

        pending = asyncio.create_task(cache_manager.get_or_load(("users", "detail", "u1"), slow_loader))
        await started.wait()
        await cache_manager.clear()
        release.set()

        assert await pending == 1
        assert await cache_manager.get(("users", "detail", "u1")) is None

    @pytest.mark.asyncio
    async def test_unrelated_invalidate_keeps_load(self, cache_manager):
        started, release = asyncio.Event(), asyncio.Event()

        async def slow_loader():
            started.set()
            await release.wait()
            return ["g1"]

        pending = asyncio.create_task(cache_manager.get_or_load(("groups", "list"), slow_loader))
        await started.wait()
        await cache_manager.invalidate(("documents",))
        release.set()

        await pending
        assert await cache_manager.get(("groups", "list")) == ["g1"]
    @pytest.mark.asyncio
    async def test_clear(self, cache_manager):
        await cache_manager.set(("a",), 1)
        await cache_manager.set(("b",), 2)
        assert await cache_manager.clear() == 2
        assert await cache_manager.get(("a",)) is None

    @pytest.mark.asyncio
    async def test_cleanup_expired_and_stats(self, cache_manager):
        await cache_manager.set(("fresh",), 1, ttl=300)
        await cache_manager.set(("stale",), 2, ttl=0)

        stats = await cache_manager.get_stats()
        assert stats == {"total_entries": 2, "active_entries": 1, "expired_entries": 1}

        assert await cache_manager.cleanup_expired() == 1
        assert (await cache_manager.get_stats())["total_entries"] == 1

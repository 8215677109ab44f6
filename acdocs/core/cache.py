"""
Cache Manager
In-memory query cache with stale windows and prefix invalidation
"""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple

from acdocs.core.logging import get_logger

logger = get_logger(__name__)

QueryKey = Tuple[Hashable, ...]


class CacheManager:
    """
    In-memory cache keyed by query-key tuples

    A key such as ``("documents", "detail", "42")`` can be dropped on its
    own or together with every key sharing a prefix, e.g. ``("documents",)``.

    Every delete, invalidate and clear bumps a generation counter for the
    dropped prefix; get_or_load discards a load that started before such
    a bump instead of caching it.
    """

    def __init__(self):
        """Initialize the cache manager"""
        self._cache: Dict[QueryKey, tuple[Any, datetime]] = {}
        self._generations: Dict[QueryKey, int] = {}
        self._lock = asyncio.Lock()
        logger.debug("CacheManager initialized")

    def _bump(self, prefix: QueryKey) -> None:
        self._generations[prefix] = self._generations.get(prefix, 0) + 1

    def _generation(self, key: QueryKey) -> Tuple[int, ...]:
        # One counter per prefix of key, the empty prefix included
        return tuple(self._generations.get(key[:size], 0) for size in range(len(key) + 1))

    def _store(self, key: QueryKey, value: Any, ttl: int) -> None:
        expiry = datetime.now() + timedelta(seconds=ttl)
        self._cache[key] = (value, expiry)
        logger.debug(f"Cache set: {key} (TTL: {ttl}s)")

    async def get(self, key: QueryKey) -> Optional[Any]:
        """
        Get a value from the cache

        Args:
            key: Query key

        Returns:
            Cached value or None if not found/stale
        """
        async with self._lock:
            if key not in self._cache:
                return None

            value, expiry = self._cache[key]

            if datetime.now() >= expiry:
                del self._cache[key]
                logger.debug(f"Cache stale: {key}")
                return None

            logger.debug(f"Cache hit: {key}")
            return value

    async def set(self, key: QueryKey, value: Any, ttl: int = 300) -> None:
        """
        Set a value in the cache

        Args:
            key: Query key
            value: Value to cache
            ttl: Stale window in seconds
        """
        async with self._lock:
            self._store(key, value, ttl)

    async def get_or_load(
        self,
        key: QueryKey,
        loader: Callable[[], Awaitable[Any]],
        ttl: int = 300,
    ) -> Any:
        """
        Return the cached value, or await loader() and cache its result

        The result is returned but not cached when the key was deleted or
        invalidated while loader() was running.
        """
        async with self._lock:
            generation = self._generation(key)
        value = await self.get(key)
        if value is not None:
            return value
        value = await loader()
        if value is None:
            return value
        async with self._lock:
            if self._generation(key) != generation:
                logger.debug(f"Cache load discarded, invalidated meanwhile: {key}")
            else:
                self._store(key, value, ttl)
        return value

    async def delete(self, key: QueryKey) -> bool:
        async with self._lock:
            self._bump(key)
            if key in self._cache:
                del self._cache[key]
                logger.debug(f"Cache deleted: {key}")
                return True
            return False

    async def invalidate(self, prefix: QueryKey) -> int:
        """
        Drop every key starting with prefix

        Returns:
            Number of entries removed
        """
        async with self._lock:
            self._bump(prefix)
            size = len(prefix)
            doomed = [key for key in self._cache if key[:size] == prefix]
            for key in doomed:
                del self._cache[key]
            if doomed:
                logger.debug(f"Cache invalidated {len(doomed)} entries under {prefix}")
            return len(doomed)

    async def clear(self) -> int:
        async with self._lock:
            self._bump(())
            count = len(self._cache)
            self._cache.clear()
            logger.info(f"Cache cleared: {count} entries")
            return count

    async def cleanup_expired(self) -> int:
        """
        Remove all stale entries from the cache

        Returns:
            Number of entries removed
        """
        async with self._lock:
            now = datetime.now()
            expired_keys = [
                key
                for key, (_, expiry) in self._cache.items()
                if now >= expiry
            ]

            for key in expired_keys:
                del self._cache[key]

            if expired_keys:
                logger.info(f"Cleaned up {len(expired_keys)} expired cache entries")

            return len(expired_keys)

    async def get_stats(self) -> Dict[str, Any]:
        async with self._lock:
            now = datetime.now()
            active_count = sum(
                1
                for _, expiry in self._cache.values()
                if now < expiry
            )
            expired_count = len(self._cache) - active_count

            return {
                "total_entries": len(self._cache),
                "active_entries": active_count,
                "expired_entries": expired_count,
            }

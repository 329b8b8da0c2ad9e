# app/cache/metadata_cache.py
from __future__ import annotations

"""
# FlixCatalog — Metadata read-through cache

Short-TTL cache in front of persisted video rows and video lists.

## Regions
- `video:{id}`        single record            (`CACHE_TTL_VIDEO`, 120s)
- `videos:all`        full list, newest first  (`CACHE_TTL_VIDEOS`, 120s)
- `videos:featured`   featured list            (`CACHE_TTL_FEATURED`, 300s)

## Contract
- `get_or_load(key, ttl, loader)`: a hit returns the stored value without
  calling `loader`; a miss awaits `loader`, stores the result for `ttl`
  seconds and returns it.
- Loader failures propagate and nothing is stored. `None` results are not
  stored either, so a not-found lookup is repeated on the next call.
- `invalidate(video_id)` drops the item entry and both list regions.
- Values are plain JSON-able structures; the database stays the source of
  truth for writes.

## Backends
- `MemoryCacheBackend`: per-process TTL map (dev, tests).
- `RedisCacheBackend`: shared `redis_wrapper` client; read errors count as a
  miss, write/delete errors are logged (fail-open).
"""

import copy
import logging
from typing import Any, Awaitable, Callable, Optional, Protocol

from redis.exceptions import RedisError

from app.core.cache import TTLMap
from app.core.redis_client import RedisClient

logger = logging.getLogger("flixcatalog.cache")

VIDEOS_ALL_KEY = "videos:all"
VIDEOS_FEATURED_KEY = "videos:featured"


def video_key(video_id: int) -> str:
    return f"video:{int(video_id)}"


class CacheBackend(Protocol):
    async def get(self, key: str) -> Optional[Any]: ...
    async def set(self, key: str, value: Any, ttl: int) -> None: ...
    async def delete(self, *keys: str) -> None: ...


# ─────────────────────────────────────────────────────────────
# 🧠 Backends
# ─────────────────────────────────────────────────────────────
class MemoryCacheBackend:
    """Process-local backend; copies values in and out so callers can't mutate entries."""

    def __init__(self, ttl_map: Optional[TTLMap] = None):
        self._map = ttl_map or TTLMap()

    async def get(self, key: str) -> Optional[Any]:
        value = self._map.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: Any, ttl: int) -> None:
        self._map.set(key, copy.deepcopy(value), ttl)

    async def delete(self, *keys: str) -> None:
        self._map.delete(*keys)


class RedisCacheBackend:
    """JSON values under a namespace in the shared Redis pool."""

    def __init__(self, wrapper: RedisClient, *, namespace: str = "flixcatalog:cache"):
        self._wrapper = wrapper
        self._ns = namespace

    def _k(self, key: str) -> str:
        return f"{self._ns}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        try:
            return await self._wrapper.json_get(self._k(key))
        except (RedisError, RuntimeError) as e:
            logger.warning("cache get failed for %s (treated as miss): %s", key, e)
            return None

    async def set(self, key: str, value: Any, ttl: int) -> None:
        try:
            await self._wrapper.json_set(self._k(key), value, ttl_seconds=ttl)
        except (RedisError, RuntimeError) as e:
            logger.warning("cache set failed for %s: %s", key, e)

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self._wrapper.delete(*(self._k(k) for k in keys))
        except (RedisError, RuntimeError) as e:
            logger.error("cache invalidation failed for %s: %s", ", ".join(keys), e)


# ─────────────────────────────────────────────────────────────
# 📦 Cache service
# ─────────────────────────────────────────────────────────────
class MetadataCache:
    """Explicit cache instance with per-region TTLs, built once per app."""

    def __init__(self, backend: CacheBackend, *, item_ttl: int = 120, list_ttl: int = 120, featured_ttl: int = 300):
        self.backend = backend
        self.item_ttl = int(item_ttl)
        self.list_ttl = int(list_ttl)
        self.featured_ttl = int(featured_ttl)

    async def get_or_load(self, key: str, ttl: int, loader: Callable[[], Awaitable[Any]]) -> Any:
        cached = await self.backend.get(key)
        if cached is not None:
            return cached
        value = await loader()
        if value is not None:
            await self.backend.set(key, value, ttl)
        return value

    async def video(self, video_id: int, loader: Callable[[], Awaitable[Any]]) -> Any:
        return await self.get_or_load(video_key(video_id), self.item_ttl, loader)

    async def videos(self, loader: Callable[[], Awaitable[Any]]) -> Any:
        return await self.get_or_load(VIDEOS_ALL_KEY, self.list_ttl, loader)

    async def featured(self, loader: Callable[[], Awaitable[Any]]) -> Any:
        return await self.get_or_load(VIDEOS_FEATURED_KEY, self.featured_ttl, loader)

    async def invalidate(self, video_id: Optional[int] = None) -> None:
        keys = [VIDEOS_ALL_KEY, VIDEOS_FEATURED_KEY]
        if video_id is not None:
            keys.insert(0, video_key(video_id))
        await self.backend.delete(*keys)
        logger.debug("cache invalidated: %s", keys)


__all__ = [
    "MetadataCache",
    "MemoryCacheBackend",
    "RedisCacheBackend",
    "VIDEOS_ALL_KEY",
    "VIDEOS_FEATURED_KEY",
    "video_key",
]

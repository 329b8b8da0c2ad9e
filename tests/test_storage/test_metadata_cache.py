import pytest

from app.cache.metadata_cache import (
    VIDEOS_ALL_KEY,
    VIDEOS_FEATURED_KEY,
    MemoryCacheBackend,
    MetadataCache,
    RedisCacheBackend,
    video_key,
)
from app.core.cache import TTLMap
from app.core.redis_client import redis_wrapper


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class CountingLoader:
    def __init__(self, value) -> None:
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.value


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache(clock) -> MetadataCache:
    return MetadataCache(MemoryCacheBackend(TTLMap(clock=clock)), item_ttl=120, list_ttl=120, featured_ttl=300)


@pytest.mark.anyio
async def test_hit_within_ttl_skips_loader(cache, clock):
    loader = CountingLoader({"id": 1, "title": "A"})

    assert await cache.video(1, loader) == {"id": 1, "title": "A"}
    clock.now += 119
    assert await cache.video(1, loader) == {"id": 1, "title": "A"}
    assert loader.calls == 1


@pytest.mark.anyio
async def test_expiry_reloads(cache, clock):
    loader = CountingLoader([{"id": 1}])

    await cache.videos(loader)
    clock.now += 120
    await cache.videos(loader)
    assert loader.calls == 2


@pytest.mark.anyio
async def test_featured_region_has_longer_ttl(cache, clock):
    loader = CountingLoader([])

    await cache.featured(loader)
    clock.now += 200
    await cache.featured(loader)
    assert loader.calls == 1
    clock.now += 100
    await cache.featured(loader)
    assert loader.calls == 2


@pytest.mark.anyio
async def test_none_is_not_cached(cache):
    loader = CountingLoader(None)

    assert await cache.video(7, loader) is None
    assert await cache.video(7, loader) is None
    assert loader.calls == 2


@pytest.mark.anyio
async def test_loader_failure_propagates_and_stores_nothing(cache):
    async def boom():
        raise RuntimeError("db down")

    with pytest.raises(RuntimeError):
        await cache.video(3, boom)

    loader = CountingLoader({"id": 3})
    assert await cache.video(3, loader) == {"id": 3}
    assert loader.calls == 1


@pytest.mark.anyio
async def test_invalidate_drops_item_and_lists(cache):
    item, items, featured, other = (
        CountingLoader({"id": 1}),
        CountingLoader([{"id": 1}]),
        CountingLoader([{"id": 1}]),
        CountingLoader({"id": 2}),
    )
    for _ in range(2):
        await cache.video(1, item)
        await cache.videos(items)
        await cache.featured(featured)
        await cache.video(2, other)

    await cache.invalidate(1)

    await cache.video(1, item)
    await cache.videos(items)
    await cache.featured(featured)
    await cache.video(2, other)
    assert (item.calls, items.calls, featured.calls, other.calls) == (2, 2, 2, 1)


@pytest.mark.anyio
async def test_cached_values_are_copies(cache):
    await cache.video(1, CountingLoader({"id": 1, "title": "A"}))

    first = await cache.video(1, CountingLoader(None))
    first["title"] = "mutated"
    assert (await cache.video(1, CountingLoader(None)))["title"] == "A"


@pytest.mark.anyio
async def test_redis_backend_round_trip(redis_client):
    cache = MetadataCache(RedisCacheBackend(redis_wrapper, namespace="t"), item_ttl=120)
    loader = CountingLoader({"id": 9, "title": "Redis"})

    assert await cache.video(9, loader) == {"id": 9, "title": "Redis"}
    assert await cache.video(9, loader) == {"id": 9, "title": "Redis"}
    assert loader.calls == 1
    assert 0 < await redis_client.ttl(f"t:{video_key(9)}") <= 120

    await redis_client.set(f"t:{VIDEOS_ALL_KEY}", "[]")
    await redis_client.set(f"t:{VIDEOS_FEATURED_KEY}", "[]")
    await cache.invalidate(9)
    assert await redis_client.exists(f"t:{video_key(9)}", f"t:{VIDEOS_ALL_KEY}", f"t:{VIDEOS_FEATURED_KEY}") == 0

"""
Tests for the store-backed cache.
"""

from datetime import timedelta

import pytest

from moviematch.datastore import CacheEntryRepository
from moviematch.services.cache import CacheManager


@pytest.fixture
def cache(store, clock) -> CacheManager:
    return CacheManager(store, default_ttl=timedelta(days=30), clock=clock)


class TestCacheManager:
    """Tests for CacheManager reads and writes."""

    @pytest.mark.asyncio
    async def test_miss_on_empty_store(self, cache):
        assert await cache.get("movies_popular") is None
        assert cache.get_stats().misses == 1

    @pytest.mark.asyncio
    async def test_fresh_hit(self, cache):
        assert await cache.set("movies_popular", [{"id": "1"}]) is True

        result = await cache.get("movies_popular")

        assert result is not None
        assert result.data == [{"id": "1"}]
        assert result.is_stale is False
        assert cache.get_stats().hits == 1

    @pytest.mark.asyncio
    async def test_expired_entry_is_a_miss_unless_stale_allowed(self, cache, clock):
        await cache.set("movie_details_603", {"title": "The Matrix"})
        clock.advance(days=31)

        assert await cache.get("movie_details_603") is None

        stale = await cache.get("movie_details_603", allow_stale=True)
        assert stale is not None
        assert stale.is_stale is True
        assert stale.data == {"title": "The Matrix"}
        assert cache.get_stats().stale_hits == 1

    @pytest.mark.asyncio
    async def test_entry_expires_exactly_at_ttl(self, cache, clock):
        await cache.set("k", {"a": 1}, ttl=timedelta(hours=1))

        clock.advance(minutes=59)
        assert await cache.get("k") is not None

        clock.advance(minutes=1)
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_set_overwrites(self, cache):
        await cache.set("k", {"v": 1})
        await cache.set("k", {"v": 2})

        result = await cache.get("k")
        assert result.data == {"v": 2}
        assert cache.get_stats().writes == 2

    @pytest.mark.asyncio
    async def test_corrupt_payload_degrades_to_miss(self, cache, store, clock):
        async with store.session() as session:
            await CacheEntryRepository(session).put(
                "broken",
                "{not json",
                cached_at=clock(),
                expires_at=clock() + timedelta(days=1),
            )

        assert await cache.get("broken") is None
        assert cache.get_stats().errors == 1

    @pytest.mark.asyncio
    async def test_unserializable_value_is_not_written(self, cache):
        assert await cache.set("k", {"v": object()}) is False
        assert cache.get_stats().errors == 1

    @pytest.mark.asyncio
    async def test_prefix_isolates_keys(self, store, clock):
        a = CacheManager(store, prefix="a:", clock=clock)
        b = CacheManager(store, prefix="b:", clock=clock)

        await a.set("k", 1)

        assert (await a.get("k")).data == 1
        assert await b.get("k") is None

    def test_stats_hit_rate(self, cache):
        stats = cache.get_stats()
        stats.hits, stats.misses = 3, 1

        assert stats.hit_rate == 0.75
        assert stats.to_dict()["hit_rate"] == "75.00%"

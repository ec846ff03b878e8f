"""
Tests for the catalog degrade ladder: cache, remote, stale, default.
"""

from datetime import timedelta

import pytest

from moviematch.datasource.defaults import DEFAULT_MOVIES
from moviematch.services.cache import CacheManager
from moviematch.services.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
)
from moviematch.services.movie_provider import (
    MovieProvider,
    candidates_key,
    details_key,
)


@pytest.fixture
def cache(store, clock) -> CacheManager:
    return CacheManager(store, clock=clock)


@pytest.fixture
def breaker(clock, metrics) -> CircuitBreaker:
    return CircuitBreaker(
        "fake",
        CircuitBreakerConfig(failure_threshold=2),
        clock=clock,
        metrics=metrics,
    )


@pytest.fixture
def provider(catalog, breaker, cache, metrics) -> MovieProvider:
    return MovieProvider(
        catalog, breaker, cache, cache_ttl=timedelta(days=30), metrics=metrics
    )


def test_cache_keys():
    assert candidates_key(None) == "movies_popular"
    assert candidates_key("comedy") == "movies_comedy"
    assert details_key("603") == "movie_details_603"


class TestDegradeLadder:
    """Each rung answers only when the ones above it cannot."""

    @pytest.mark.asyncio
    async def test_remote_then_cache(self, provider, catalog):
        first = await provider.fetch_candidates()
        second = await provider.fetch_candidates()

        assert first.source == "remote"
        assert second.source == "cache"
        assert [m.id for m in second.data] == ["603", "550"]
        assert catalog.list_calls == 1

    @pytest.mark.asyncio
    async def test_genres_cached_separately(self, provider, catalog):
        await provider.fetch_candidates("comedy")
        result = await provider.fetch_candidates("horror")

        assert result.source == "remote"
        assert catalog.list_calls == 2

    @pytest.mark.asyncio
    async def test_expired_cache_refetches(self, provider, catalog, clock):
        await provider.fetch_details("603")
        clock.advance(days=31)

        result = await provider.fetch_details("603")

        assert result.source == "remote"
        assert catalog.detail_calls == 2

    @pytest.mark.asyncio
    async def test_stale_served_when_remote_fails(self, provider, catalog, clock):
        await provider.fetch_details("603")
        clock.advance(days=31)
        catalog.failing = True

        result = await provider.fetch_details("603")

        assert result.source == "stale"
        assert result.is_degraded
        assert result.data.title == "Title 603"

    @pytest.mark.asyncio
    async def test_default_when_nothing_cached(self, provider, catalog):
        catalog.failing = True

        movies = await provider.fetch_candidates("comedy")
        detail = await provider.fetch_details("42")

        assert movies.source == "default"
        assert len(movies.data) == len(DEFAULT_MOVIES)
        assert detail.source == "default"
        assert detail.data.id == "42"
        assert detail.data.title == "Movie unavailable"

    @pytest.mark.asyncio
    async def test_open_breaker_skips_remote(self, provider, catalog, breaker):
        catalog.failing = True
        await provider.fetch_candidates()
        await provider.fetch_candidates()
        assert breaker.state == CircuitState.OPEN

        calls_before = catalog.list_calls
        result = await provider.fetch_candidates()

        assert result.source == "default"
        assert catalog.list_calls == calls_before

    @pytest.mark.asyncio
    async def test_unreadable_cache_entry_treated_as_miss(self, provider, cache, catalog):
        await cache.set(details_key("603"), {"unexpected": "shape"})

        result = await provider.fetch_details("603")

        assert result.source == "remote"
        assert catalog.detail_calls == 1

    @pytest.mark.asyncio
    async def test_empty_cached_list_is_a_miss(self, provider, cache):
        await cache.set(candidates_key(None), [])

        result = await provider.fetch_candidates()

        assert result.source == "remote"

    @pytest.mark.asyncio
    async def test_lookup_metrics(self, provider, metrics):
        await provider.fetch_candidates()
        await provider.fetch_candidates()

        sources = [c.args for c in metrics.catalog_lookup.call_args_list]
        assert sources == [("movies", "remote"), ("movies", "cache")]


class TestPeekTitle:
    """Title lookup never touches the catalog."""

    @pytest.mark.asyncio
    async def test_uses_cached_details_of_any_age(self, provider, catalog, clock):
        await provider.fetch_details("603")
        clock.advance(days=365)

        assert await provider.peek_title("603") == "Title 603"
        assert catalog.detail_calls == 1

    @pytest.mark.asyncio
    async def test_placeholder_when_uncached(self, provider, catalog):
        assert await provider.peek_title("999") == "Movie 999"
        assert catalog.detail_calls == 0

"""
MovieProvider - Cache-aside access to the movie catalog.

Every lookup walks the same degrade ladder, each rung less fresh but more
available than the one above:

1. fresh cache entry          -> source="cache"  (no remote call)
2. catalog via circuit breaker -> source="remote" (written back to cache)
3. expired cache entry        -> source="stale"
4. built-in default           -> source="default"

Browsing is not safety-critical, so lookups never raise.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Generic, Literal, TypeVar

from loguru import logger
from pydantic import ValidationError

from moviematch.datasource.defaults import default_movie_details, default_movies
from moviematch.metrics import MetricsSink, default_metrics
from moviematch.models import MediaDetail, MediaSummary
from moviematch.services.cache import DEFAULT_TTL, CacheManager
from moviematch.services.circuit_breaker import CircuitBreaker

if TYPE_CHECKING:
    from moviematch.datasource.base import CatalogSource

T = TypeVar("T")

Source = Literal["cache", "remote", "stale", "default"]


@dataclass
class ProviderResult(Generic[T]):
    """Lookup result tagged with the rung that produced it."""

    data: T
    source: Source

    @property
    def is_degraded(self) -> bool:
        return self.source in ("stale", "default")


def candidates_key(genre: str | None) -> str:
    return f"movies_{genre or 'popular'}"


def details_key(media_id: str) -> str:
    return f"movie_details_{media_id}"


class MovieProvider:
    """
    Cache-aside movie provider.

    Usage:
        provider = MovieProvider(catalog, breaker, cache)
        movies = await provider.get_candidates("comedy")
        result = await provider.fetch_details("603")
        if result.is_degraded:
            ...
    """

    def __init__(
        self,
        catalog: "CatalogSource",
        breaker: CircuitBreaker,
        cache: CacheManager,
        cache_ttl: timedelta = DEFAULT_TTL,
        metrics: MetricsSink | None = None,
    ):
        self.catalog = catalog
        self.breaker = breaker
        self.cache = cache
        self.cache_ttl = cache_ttl
        self._metrics = metrics or default_metrics

    async def get_candidates(self, genre: str | None = None) -> list[MediaSummary]:
        return (await self.fetch_candidates(genre)).data

    async def get_details(self, media_id: str) -> MediaDetail:
        return (await self.fetch_details(media_id)).data

    async def fetch_candidates(
        self, genre: str | None = None
    ) -> ProviderResult[list[MediaSummary]]:
        return await self._lookup(
            kind="movies",
            key=candidates_key(genre),
            remote=lambda: self.catalog.fetch_list(genre),
            parse=lambda raw: [MediaSummary.model_validate(m) for m in raw],
            dump=lambda movies: [m.model_dump(mode="json") for m in movies],
            fallback=default_movies,
        )

    async def fetch_details(self, media_id: str) -> ProviderResult[MediaDetail]:
        return await self._lookup(
            kind="details",
            key=details_key(media_id),
            remote=lambda: self.catalog.fetch_detail(media_id),
            parse=MediaDetail.model_validate,
            dump=lambda detail: detail.model_dump(mode="json"),
            fallback=lambda: default_movie_details(media_id),
        )

    async def peek_title(self, media_id: str) -> str:
        """Title from cached details of any age, without touching the catalog."""
        detail = await self._read_cache(
            details_key(media_id), MediaDetail.model_validate, allow_stale=True
        )
        if detail is not None:
            return detail.title
        return f"Movie {media_id}"

    async def _lookup(
        self,
        kind: str,
        key: str,
        remote: Callable[[], Awaitable[T]],
        parse: Callable[[Any], T],
        dump: Callable[[T], Any],
        fallback: Callable[[], T],
    ) -> ProviderResult[T]:
        # 1. Fresh cache
        cached = await self._read_cache(key, parse)
        if cached is not None:
            return self._result(kind, key, cached, "cache")

        # 2. Catalog through the breaker
        try:
            data = await self.breaker.execute(remote)
        except Exception as e:
            logger.warning(
                f"Catalog {kind} lookup failed for {key}, falling back to cache: "
                f"{type(e).__name__}: {e}"
            )
        else:
            await self.cache.set(key, dump(data), ttl=self.cache_ttl)
            return self._result(kind, key, data, "remote")

        # 3. Expired cache
        stale = await self._read_cache(key, parse, allow_stale=True)
        if stale is not None:
            return self._result(kind, key, stale, "stale")

        # 4. Built-in default
        return self._result(kind, key, fallback(), "default")

    async def _read_cache(
        self,
        key: str,
        parse: Callable[[Any], T],
        allow_stale: bool = False,
    ) -> T | None:
        result = await self.cache.get(key, allow_stale=allow_stale)
        if result is None or not result.data:
            return None
        try:
            return parse(result.data)
        except (ValidationError, TypeError) as e:
            logger.warning(f"Discarding unreadable cache entry {key}: {e}")
            return None

    def _result(self, kind: str, key: str, data: T, source: Source) -> ProviderResult[T]:
        self._metrics.catalog_lookup(kind, source)
        if source in ("stale", "default"):
            logger.warning(f"Serving {source} {kind} for {key}")
        else:
            logger.debug(f"Serving {kind} for {key} from {source}")
        return ProviderResult(data=data, source=source)

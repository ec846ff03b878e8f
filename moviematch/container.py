"""
Composition root.

Every long-lived object (datastore, breaker, catalog client, publisher) is
built exactly once here and handed to its users, so there is no
module-level mutable state to share between requests.
"""

from dataclasses import dataclass
from datetime import timedelta

from loguru import logger

from moviematch.datasource import CatalogSource, TmdbSource
from moviematch.datastore import Datastore
from moviematch.events import EventPublisher, HttpTransport, RealtimeTransport
from moviematch.services import (
    CacheManager,
    CircuitBreaker,
    CircuitBreakerConfig,
    HttpClient,
    MovieProvider,
)
from moviematch.settings import Settings, global_settings
from moviematch.voting import RoomService, VoteEngine


@dataclass
class Services:
    """Handles to everything a request may need."""

    store: Datastore
    breaker: CircuitBreaker
    cache: CacheManager
    catalog: CatalogSource
    movies: MovieProvider
    publisher: EventPublisher
    rooms: RoomService
    votes: VoteEngine

    async def close(self) -> None:
        await self.catalog.client.close()
        await self.publisher.close()
        await self.store.close()
        logger.info("Services closed")


def build_services(
    settings: Settings | None = None,
    store: Datastore | None = None,
    catalog: CatalogSource | None = None,
    transport: RealtimeTransport | None = None,
) -> Services:
    settings = settings or global_settings

    store = store or Datastore.from_settings(settings)
    catalog = catalog or TmdbSource(
        api_key=settings.tmdb_api_key,
        client=HttpClient(timeout=settings.catalog_timeout),
        base_url=settings.tmdb_base_url,
        language=settings.tmdb_language,
    )
    if transport is None and settings.realtime_webhook_url:
        transport = HttpTransport(
            settings.realtime_webhook_url,
            client=HttpClient(timeout=settings.realtime_timeout),
        )

    breaker = CircuitBreaker(
        catalog.service_id, CircuitBreakerConfig.from_settings(settings)
    )
    cache = CacheManager(store, debug=settings.log_level.upper() == "DEBUG")
    movies = MovieProvider(
        catalog,
        breaker,
        cache,
        cache_ttl=timedelta(days=settings.cache_ttl_days),
    )
    publisher = EventPublisher(transport=transport)

    if not catalog.is_configured():
        logger.warning(
            f"Catalog '{catalog.service_id}' not configured, "
            "movie lookups will degrade to cached or default data"
        )

    return Services(
        store=store,
        breaker=breaker,
        cache=cache,
        catalog=catalog,
        movies=movies,
        publisher=publisher,
        rooms=RoomService(store, publisher),
        votes=VoteEngine(store, publisher, titles=movies),
    )

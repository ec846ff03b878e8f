"""
CacheManager - Store-backed cache with TTL and stale reads.

Features:
- Entries persisted through the Datastore, so they outlive the process
- TTL (Time To Live) for cache entries
- Expired entries stay readable as a degraded fallback (allow_stale)
- Storage errors degrade to a miss instead of raising
"""

import json
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Generic, TypeVar

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from moviematch.datastore import CacheEntryRepository, Datastore
from moviematch.utils import utcnow

T = TypeVar("T")

DEFAULT_TTL = timedelta(days=30)


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry with metadata."""

    key: str
    data: T
    cached_at: datetime
    expires_at: datetime

    def is_fresh(self, now: datetime) -> bool:
        """Fresh while now < expires_at."""
        return now < self.expires_at


@dataclass
class CacheResult(Generic[T]):
    """Result from cache lookup."""

    data: T
    cached_at: datetime
    is_stale: bool


class CacheManager:
    """
    Cache manager backed by the durable store.

    Usage:
        cache = CacheManager(store)

        result = await cache.get("movies_popular")
        if result:
            return result.data

        data = await fetch_data()
        await cache.set("movies_popular", data)

        # Remote down: take whatever is there, however old
        result = await cache.get("movies_popular", allow_stale=True)
    """

    def __init__(
        self,
        store: Datastore,
        prefix: str = "",
        default_ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utcnow,
        debug: bool = False,
    ):
        self._store = store
        self._prefix = prefix
        self._default_ttl = default_ttl
        self._clock = clock
        self._debug = debug
        self._stats = CacheStats()

    async def get(self, key: str, allow_stale: bool = False) -> CacheResult[Any] | None:
        """
        Get value from cache.

        Returns CacheResult if found (and fresh, unless allow_stale), None otherwise.
        """
        full_key = f"{self._prefix}{key}"
        try:
            async with self._store.session() as session:
                stored = await CacheEntryRepository(session).get(full_key)
            if stored is None:
                self._stats.misses += 1
                self._log(f"MISS: {full_key}")
                return None
            entry = CacheEntry(
                key=stored.key,
                data=json.loads(stored.payload),
                cached_at=stored.cached_at,
                expires_at=stored.expires_at,
            )
        except (SQLAlchemyError, json.JSONDecodeError) as e:
            self._stats.errors += 1
            logger.warning(f"[CacheManager] read failed for {full_key}: {e}")
            return None

        is_stale = not entry.is_fresh(self._clock())
        if is_stale and not allow_stale:
            self._stats.misses += 1
            self._log(f"EXPIRED: {full_key}")
            return None

        if is_stale:
            self._stats.stale_hits += 1
            self._log(f"STALE HIT: {full_key}")
        else:
            self._stats.hits += 1
            self._log(f"HIT: {full_key}")

        return CacheResult(data=entry.data, cached_at=entry.cached_at, is_stale=is_stale)

    async def set(self, key: str, data: Any, ttl: timedelta | None = None) -> bool:
        """
        Set value in cache.

        Args:
            key: Cache key
            data: JSON-serializable data to cache
            ttl: Time to live (uses default if not specified)

        Returns:
            True if written, False if the write failed (logged, not raised)
        """
        ttl = ttl or self._default_ttl
        full_key = f"{self._prefix}{key}"
        now = self._clock()

        try:
            payload = json.dumps(data, ensure_ascii=False)
            async with self._store.session() as session:
                await CacheEntryRepository(session).put(
                    full_key, payload, cached_at=now, expires_at=now + ttl
                )
        except (SQLAlchemyError, TypeError, ValueError) as e:
            self._stats.errors += 1
            logger.warning(f"[CacheManager] write failed for {full_key}: {e}")
            return False

        self._stats.writes += 1
        self._log(f"SET: {full_key} (TTL: {ttl.total_seconds()}s)")
        return True

    def get_stats(self) -> "CacheStats":
        """Get cache statistics."""
        return self._stats

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[CacheManager] {message}")


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    stale_hits: int = 0
    writes: int = 0
    errors: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.stale_hits + self.misses
        if total == 0:
            return 0.0
        return (self.hits + self.stale_hits) / total

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "stale_hits": self.stale_hits,
            "writes": self.writes,
            "errors": self.errors,
            "hit_rate": f"{self.hit_rate:.2%}",
        }

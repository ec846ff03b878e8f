"""
Service layer infrastructure - resilience patterns for the movie catalog.

Provides:
- CacheManager: Store-backed cache with TTL and stale reads
- CircuitBreaker: Prevents cascading failures
- HttpClient: Shared async HTTP client with error mapping
- MovieProvider: Cache-aside catalog access with a degrade ladder
"""

from moviematch.services.errors import (
    CircuitOpenError,
    RemoteError,
    RequestTimeoutError,
    ServiceError,
)
from moviematch.services.cache import CacheEntry, CacheManager, CacheResult
from moviematch.services.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitSnapshot,
    CircuitState,
)
from moviematch.services.client import HttpClient
from moviematch.services.movie_provider import MovieProvider, ProviderResult

__all__ = [
    # Errors
    "ServiceError",
    "CircuitOpenError",
    "RemoteError",
    "RequestTimeoutError",
    # Cache
    "CacheManager",
    "CacheEntry",
    "CacheResult",
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitSnapshot",
    "CircuitState",
    # Client
    "HttpClient",
    # Provider
    "MovieProvider",
    "ProviderResult",
]

"""
Base catalog source interface.
"""

from abc import ABC, abstractmethod

from moviematch.models import MediaDetail, MediaSummary
from moviematch.services.client import HttpClient


class CatalogSource(ABC):
    """
    Abstract base class for movie catalogs.

    All catalog sources should:
    - Use HttpClient for HTTP requests
    - Return Pydantic models
    - Raise RemoteError (or RequestTimeoutError) on any failure, so the
      circuit breaker and the degrade ladder can react
    """

    def __init__(self, client: HttpClient | None = None):
        self.client = client or HttpClient()

    @property
    @abstractmethod
    def service_id(self) -> str:
        """Unique identifier for this catalog."""
        ...

    @abstractmethod
    async def fetch_list(self, genre: str | None = None) -> list[MediaSummary]:
        """Fetch candidate movies, optionally filtered by genre."""
        ...

    @abstractmethod
    async def fetch_detail(self, media_id: str) -> MediaDetail:
        """Fetch details for one movie."""
        ...

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if the catalog is properly configured."""
        ...

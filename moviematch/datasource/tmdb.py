"""
TMDB API catalog source.

API Documentation: https://developer.themoviedb.org/docs
Rate limited; get an API key at https://www.themoviedb.org/settings/api
"""

from typing import Any

from loguru import logger
from pydantic import ValidationError

from moviematch.datasource.base import CatalogSource
from moviematch.models import Genre, MediaDetail, MediaSummary
from moviematch.services.client import HttpClient
from moviematch.services.errors import RemoteError

IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"
NO_POSTER_URL = "https://via.placeholder.com/500x750?text=No+Poster"

# Page size served to a room's voting deck
MAX_RESULTS = 20

GENRE_IDS = {
    "action": "28",
    "adventure": "12",
    "animation": "16",
    "comedy": "35",
    "crime": "80",
    "documentary": "99",
    "drama": "18",
    "family": "10751",
    "fantasy": "14",
    "history": "36",
    "horror": "27",
    "music": "10402",
    "mystery": "9648",
    "romance": "10749",
    "science_fiction": "878",
    "thriller": "53",
    "war": "10752",
    "western": "37",
}
DEFAULT_GENRE_ID = GENRE_IDS["action"]


def genre_id(genre_name: str) -> str:
    """Map a genre name to its TMDB id, falling back to Action."""
    return GENRE_IDS.get(genre_name.lower(), DEFAULT_GENRE_ID)


class TmdbSource(CatalogSource):
    """
    TMDB catalog.

    Popular movies when no genre is given, otherwise discover-by-genre.
    """

    BASE_URL = "https://api.themoviedb.org/3"
    SERVICE_ID = "tmdb"

    def __init__(
        self,
        api_key: str,
        client: HttpClient | None = None,
        base_url: str | None = None,
        language: str = "es-ES",
    ):
        super().__init__(client)
        self.api_key = api_key
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.language = language

    @property
    def service_id(self) -> str:
        return self.SERVICE_ID

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def fetch_list(self, genre: str | None = None) -> list[MediaSummary]:
        params = self._params(page=1)
        if genre:
            url = f"{self.base_url}/discover/movie"
            params["with_genres"] = genre_id(genre)
        else:
            url = f"{self.base_url}/movie/popular"

        data = await self._get(url, params)
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise RemoteError("Invalid TMDB list response", service_id=self.SERVICE_ID)

        movies = [self._parse_summary(item) for item in results[:MAX_RESULTS]]
        logger.debug(f"TMDB returned {len(movies)} movies (genre={genre})")
        return movies

    async def fetch_detail(self, media_id: str) -> MediaDetail:
        url = f"{self.base_url}/movie/{media_id}"
        params = self._params(append_to_response="credits,videos")

        data = await self._get(url, params)
        if not isinstance(data, dict) or "id" not in data:
            raise RemoteError(
                f"Invalid TMDB detail response for {media_id}",
                service_id=self.SERVICE_ID,
            )
        return self._parse_detail(data)

    async def _get(self, url: str, params: dict[str, Any]) -> Any:
        if not self.is_configured():
            raise RemoteError("TMDB API key not configured", service_id=self.SERVICE_ID)
        return await self.client.request_json(
            service_id=self.SERVICE_ID,
            url=url,
            params=params,
            headers={"Accept": "application/json"},
        )

    def _params(self, **extra: Any) -> dict[str, Any]:
        return {"api_key": self.api_key, "language": self.language, **extra}

    def _parse_summary(self, item: Any) -> MediaSummary:
        try:
            poster_path = item.get("poster_path")
            return MediaSummary(
                id=str(item["id"]),
                title=item.get("title") or item.get("original_title") or "Untitled",
                poster=f"{IMAGE_BASE_URL}{poster_path}" if poster_path else NO_POSTER_URL,
                overview=item.get("overview") or "No description available",
            )
        except (AttributeError, KeyError, TypeError, ValidationError) as e:
            raise RemoteError(
                f"Malformed TMDB movie entry: {e}", service_id=self.SERVICE_ID
            ) from e

    def _parse_detail(self, data: dict[str, Any]) -> MediaDetail:
        try:
            return MediaDetail(
                id=str(data["id"]),
                title=data.get("title") or data.get("original_title") or "Untitled",
                overview=data.get("overview") or "No description available",
                poster_path=data.get("poster_path"),
                backdrop_path=data.get("backdrop_path"),
                release_date=data.get("release_date") or "",
                vote_average=data.get("vote_average") or 0,
                genres=[
                    Genre(id=g["id"], name=g["name"]) for g in data.get("genres") or []
                ],
                runtime=data.get("runtime"),
            )
        except (KeyError, TypeError, ValidationError) as e:
            raise RemoteError(
                f"Malformed TMDB detail: {e}", service_id=self.SERVICE_ID
            ) from e

from moviematch.datasource.base import CatalogSource
from moviematch.datasource.defaults import default_movie_details, default_movies
from moviematch.datasource.tmdb import TmdbSource

__all__ = [
    "CatalogSource",
    "TmdbSource",
    "default_movie_details",
    "default_movies",
]

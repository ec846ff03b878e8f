"""
Built-in catalog fallback, served when neither the catalog nor any cached
copy is available.
"""

from moviematch.models import MediaDetail, MediaSummary

PLACEHOLDER_POSTER = "https://via.placeholder.com/500x750?text={label}"

DEFAULT_MOVIES = [
    {
        "id": "default_1",
        "title": "The Godfather",
        "label": "The+Godfather",
        "overview": "The story of an Italian mafia family in New York.",
    },
    {
        "id": "default_2",
        "title": "Pulp Fiction",
        "label": "Pulp+Fiction",
        "overview": "Intertwined crime stories in Los Angeles.",
    },
    {
        "id": "default_3",
        "title": "The Lord of the Rings",
        "label": "LOTR",
        "overview": "An epic fantasy adventure in Middle-earth.",
    },
    {
        "id": "default_4",
        "title": "Forrest Gump",
        "label": "Forrest+Gump",
        "overview": "The extraordinary life of a simple man.",
    },
    {
        "id": "default_5",
        "title": "The Matrix",
        "label": "Matrix",
        "overview": "A programmer discovers the truth about reality.",
    },
]


def default_movies() -> list[MediaSummary]:
    return [
        MediaSummary(
            id=movie["id"],
            title=movie["title"],
            poster=PLACEHOLDER_POSTER.format(label=movie["label"]),
            overview=movie["overview"],
        )
        for movie in DEFAULT_MOVIES
    ]


def default_movie_details(media_id: str) -> MediaDetail:
    return MediaDetail(
        id=media_id,
        title="Movie unavailable",
        overview=(
            "Details for this movie are temporarily unavailable due to "
            "connectivity problems. Please try again later."
        ),
    )

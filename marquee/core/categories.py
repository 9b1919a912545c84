"""Category mappings for TMDB discover parameters.

Maps user-facing category selectors (``mood/family-movie-night``,
``genres/action``...) to the filter bundle sent to the discover endpoints.
The table is immutable and loaded once per process.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from marquee.core.errors import UnsupportedCategory


@dataclass(frozen=True)
class CategorySpec:
    """A resolved category: provider filters plus the media type they target."""

    category_type: str
    category_key: str
    filters: Mapping[str, Any] = field(default_factory=dict)
    implied_media_type: Optional[str] = None

    @property
    def media_type(self) -> str:
        return self.implied_media_type or "movie"


def _freeze(table: Dict[str, Dict[str, Dict[str, Any]]]):
    frozen = {}
    for category_type, entries in table.items():
        frozen[category_type] = MappingProxyType(
            {
                key: MappingProxyType(
                    {
                        name: tuple(value) if isinstance(value, list) else value
                        for name, value in params.items()
                    }
                )
                for key, params in entries.items()
            }
        )
    return MappingProxyType(frozen)


_GENRE_IDS = {
    "action": 28,
    "adventure": 12,
    "animation": 16,
    "comedy": 35,
    "crime": 80,
    "documentary": 99,
    "drama": 18,
    "family": 10751,
    "fantasy": 14,
    "history": 36,
    "horror": 27,
    "music": 10402,
    "mystery": 9648,
    "romance": 10749,
    "science-fiction": 878,
    "thriller": 53,
    "war": 10752,
    "western": 37,
}

_STUDIO_COMPANIES = {
    "disney": "2",  # Walt Disney Pictures
    "pixar": "3",  # Pixar Animation Studios
    "marvel": "420",  # Marvel Studios
    "dc": "9993",  # DC Entertainment
    "universal": "33",  # Universal Pictures
    "lucasfilm": "1",
    "illumination": "6704",
    "dreamworks": "521",  # DreamWorks Animation
}

_NETWORKS = {
    "netflix": "213",
    "apple-tv": "2552",
    "disney-plus": "2739",
    "prime-video": "1024",
    "hbo": "49",
    "paramount-plus": "4330",
}

CATEGORY_MAPPINGS = _freeze(
    {
        "mood": {
            "family-movie-night": {
                "genres": [10751],
                "sort_by": "popularity.desc",
                "media_type": "movie",
            },
            "rom-com-classics": {
                "genres": [10749, 35],
                "sort_by": "vote_average.desc",
                "vote_average.gte": 7.0,
                "media_type": "movie",
            },
            "psychological-thrillers": {
                "genres": [53],
                "with_keywords": "9715,10349",  # psychological, mind-bending
                "sort_by": "vote_average.desc",
                "vote_average.gte": 6.5,
                "media_type": "movie",
            },
            "feel-good-shows": {
                "genres": [35],
                "sort_by": "popularity.desc",
                "vote_average.gte": 7.0,
                "media_type": "tv",
            },
            "musicals": {
                "genres": [10402],
                "sort_by": "popularity.desc",
                "media_type": "movie",
            },
            "halloween": {
                "genres": [27],
                "sort_by": "popularity.desc",
                "media_type": "movie",
            },
            "bingeable-series": {
                "sort_by": "popularity.desc",
                "vote_average.gte": 7.5,
                "with_runtime.gte": 30,
                "media_type": "tv",
            },
        },
        "awards": {
            "oscar-winners": {
                "with_keywords": "210024",
                "sort_by": "vote_average.desc",
                "vote_average.gte": 7.0,
                "media_type": "movie",
            },
            "top-grossing": {
                "sort_by": "revenue.desc",
                "revenue.gte": 100000000,
                "media_type": "movie",
            },
            "imdb-top-250": {
                "sort_by": "vote_average.desc",
                "vote_count.gte": 10000,
                "vote_average.gte": 8.0,
                "media_type": "movie",
            },
            "blockbuster-shows": {
                "sort_by": "popularity.desc",
                "vote_average.gte": 8.0,
                "vote_count.gte": 1000,
                "media_type": "tv",
            },
            "top-rated": {
                "sort_by": "vote_average.desc",
                "vote_average.gte": 8.0,
                "vote_count.gte": 5000,
            },
        },
        "studios": {
            key: {"with_companies": company, "sort_by": "popularity.desc"}
            for key, company in _STUDIO_COMPANIES.items()
        },
        "networks": {
            key: {
                "with_networks": network,
                "sort_by": "popularity.desc",
                "media_type": "tv",
            }
            for key, network in _NETWORKS.items()
        },
        "genres": {
            key: {"genres": [genre_id], "sort_by": "popularity.desc"}
            for key, genre_id in _GENRE_IDS.items()
        },
    }
)

# Genres apply to both movies and TV; studios only to movies.
_DEFAULT_MEDIA_TYPES = {"genres": "movie", "studios": "movie", "networks": "tv"}


def supported_category_types() -> List[str]:
    return list(CATEGORY_MAPPINGS.keys())


def all_categories() -> Dict[str, List[str]]:
    """Get all category types with their keys."""
    return {
        category_type: list(entries.keys())
        for category_type, entries in CATEGORY_MAPPINGS.items()
    }


def resolve(category_type: str, category_key: str) -> CategorySpec:
    """Resolve a category selector to its spec.

    Raises:
        UnsupportedCategory: if the type or the key is not in the table.
    """
    entries = CATEGORY_MAPPINGS.get(category_type)
    if entries is None or category_key not in entries:
        raise UnsupportedCategory(category_type, category_key)

    mapping = entries[category_key]
    filters = {k: v for k, v in mapping.items() if k != "media_type"}
    media_type = mapping.get("media_type") or _DEFAULT_MEDIA_TYPES.get(category_type)

    return CategorySpec(
        category_type=category_type,
        category_key=category_key,
        filters=MappingProxyType(filters),
        implied_media_type=media_type,
    )


def to_provider_params(spec: CategorySpec) -> Dict[str, str]:
    """Flatten a resolved category into TMDB discover query parameters.

    Genre id lists become a comma-joined ``with_genres``; the implied media
    type is left out since it only selects the movie or TV endpoint.
    """
    params: Dict[str, str] = {}
    for name, value in spec.filters.items():
        if name == "media_type":
            continue
        if name == "genres":
            params["with_genres"] = ",".join(str(g) for g in value)
        elif isinstance(value, (list, tuple)):
            params[name] = ",".join(str(v) for v in value)
        else:
            params[name] = str(value)
    return params


def _subcategories(section: str, names: Dict[str, str]) -> List[Dict[str, str]]:
    return [
        {"key": key, "name": name, "endpoint": f"/api/categories/{section}/{key}"}
        for key, name in names.items()
    ]


CATEGORY_OVERVIEW: Dict[str, Dict[str, Any]] = {
    "new-trending": {
        "name": "New & Trending",
        "subcategories": [
            {
                "key": "trending-movies",
                "name": "Trending Movies",
                "endpoint": "/api/categories/trending/movies",
            },
            {
                "key": "hot-tv-shows",
                "name": "Hot TV Shows",
                "endpoint": "/api/categories/trending/tv",
            },
            {
                "key": "anticipated-movies",
                "name": "Anticipated Movies",
                "endpoint": "/api/categories/upcoming/movies",
            },
            {
                "key": "streaming-now",
                "name": "Films Now Streaming",
                "endpoint": "/api/categories/streaming/now",
            },
        ],
    },
    "mood-picks": {
        "name": "Mood Picks",
        "subcategories": _subcategories(
            "mood",
            {
                "family-movie-night": "Family Movie Night",
                "rom-com-classics": "Rom-Com Classics",
                "psychological-thrillers": "Psychological Thrillers",
                "feel-good-shows": "Feel-Good Shows",
                "musicals": "Musicals",
                "halloween": "Halloween",
                "bingeable-series": "Bingeable Series",
            },
        ),
    },
    "award-winners": {
        "name": "Award Winners & Blockbusters",
        "subcategories": _subcategories(
            "awards",
            {
                "oscar-winners": "Great Oscar Winners",
                "top-grossing": "Top Grossing Movies",
                "imdb-top-250": "IMDb Top 250",
                "blockbuster-shows": "Blockbuster Shows",
                "top-rated": "Top Rated",
            },
        ),
    },
    "studio-picks": {
        "name": "Studio Picks",
        "subcategories": _subcategories(
            "studio",
            {
                "disney": "Disney",
                "pixar": "Pixar",
                "marvel": "Marvel",
                "dc": "DC",
                "universal": "Universal",
                "lucasfilm": "Lucasfilm",
                "illumination": "Illumination",
                "dreamworks": "Dreamworks",
            },
        ),
    },
    "by-network": {
        "name": "By Network",
        "subcategories": _subcategories(
            "network",
            {
                "netflix": "Netflix",
                "apple-tv": "Apple TV+",
                "disney-plus": "Disney+",
                "prime-video": "Prime Video",
                "hbo": "HBO",
                "paramount-plus": "Paramount+",
            },
        ),
    },
    "by-genre": {
        "name": "By Genre",
        "subcategories": _subcategories(
            "genre",
            {key: key.replace("-", " ").title() for key in _GENRE_IDS},
        ),
    },
}

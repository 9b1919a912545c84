"""Media models for TMDB list items, detail pages and response envelopes."""

from datetime import date
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from marquee.services.dates import parse_date


class ProviderEntry(BaseModel):
    """A single watch provider (Netflix, Apple TV...) as reported by TMDB."""

    model_config = ConfigDict(extra="allow")

    provider_id: int
    provider_name: str = ""
    logo_path: Optional[str] = None
    display_priority: Optional[int] = None


class WatchProviderSummary(BaseModel):
    """Availability of a title in the reference region, by monetization type."""

    streaming: List[ProviderEntry] = []
    free: List[ProviderEntry] = []
    rent: List[ProviderEntry] = []
    buy: List[ProviderEntry] = []

    @classmethod
    def from_tmdb(
        cls, payload: Optional[Dict[str, Any]], region: str
    ) -> Optional["WatchProviderSummary"]:
        """Build the summary from a ``watch/providers`` payload.

        Returns None when TMDB has no entry for the region.
        """
        if not payload:
            return None
        regional = (payload.get("results") or {}).get(region)
        if not regional:
            return None
        return cls(
            streaming=regional.get("flatrate") or [],
            free=regional.get("ads") or [],
            rent=regional.get("rent") or [],
            buy=regional.get("buy") or [],
        )

    @property
    def has_subscription(self) -> bool:
        return bool(self.streaming or self.free)

    @property
    def has_transactional(self) -> bool:
        return bool(self.rent or self.buy)

    @property
    def subscription_platform_count(self) -> int:
        return len({p.provider_id for p in self.streaming})


class ContentItem(BaseModel):
    """A list item from TMDB (movie or TV), with optional annotations.

    Fields TMDB sends that are not declared here are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    id: int
    media_type: str
    overview: str = ""
    poster_path: Optional[str] = None
    poster_url: Optional[str] = None
    backdrop_path: Optional[str] = None
    backdrop_url: Optional[str] = None
    popularity: float = 0.0
    vote_average: float = 0.0
    vote_count: int = 0
    genre_ids: List[int] = []
    original_language: Optional[str] = None
    adult: bool = False
    tagline: Optional[str] = None

    # Trending annotations
    trending_rank: Optional[int] = None
    trending_score: Optional[int] = None

    # Release annotations
    is_upcoming: Optional[bool] = None
    days_until_release: Optional[int] = None
    days_since_release: Optional[int] = None

    # Streaming annotations
    watch_providers: Optional[WatchProviderSummary] = None
    streaming_available: Optional[bool] = None
    is_ott_original: Optional[bool] = None
    ott_signals: Optional[List[str]] = None
    streaming_release_score: Optional[int] = None
    primary_streaming_platform: Optional[str] = None
    streaming_added_date: Optional[str] = None
    streaming_added_date_formatted: Optional[str] = None
    streaming_added_date_estimated: Optional[bool] = None

    @property
    def display_title(self) -> str:
        return ""

    @property
    def primary_date_str(self) -> Optional[str]:
        return None

    @property
    def primary_date(self) -> Optional[date]:
        return parse_date(self.primary_date_str)

    @property
    def identity(self) -> Tuple[int, str]:
        return (self.id, self.media_type)


class MovieItem(ContentItem):
    """A movie list item."""

    media_type: Literal["movie"] = "movie"
    title: str = "Unknown"
    original_title: Optional[str] = None
    release_date: Optional[str] = None
    release_date_formatted: Optional[str] = None
    production_companies: Optional[List[Dict[str, Any]]] = None

    @property
    def display_title(self) -> str:
        return self.title

    @property
    def primary_date_str(self) -> Optional[str]:
        return self.release_date


class TVItem(ContentItem):
    """A TV series list item."""

    media_type: Literal["tv"] = "tv"
    name: str = "Unknown"
    original_name: Optional[str] = None
    first_air_date: Optional[str] = None
    first_air_date_formatted: Optional[str] = None
    origin_country: List[str] = []

    @property
    def display_title(self) -> str:
        return self.name

    @property
    def primary_date_str(self) -> Optional[str]:
        return self.first_air_date


class PersonItem(BaseModel):
    """A person result from a multi search."""

    model_config = ConfigDict(extra="allow")

    id: int
    media_type: Literal["person"] = "person"
    name: str = "Unknown"
    original_name: Optional[str] = None
    profile_path: Optional[str] = None
    profile_url: Optional[str] = None
    popularity: float = 0.0
    adult: bool = False
    known_for_department: Optional[str] = None
    known_for: List[Union[MovieItem, TVItem]] = []

    @property
    def display_title(self) -> str:
        return self.name


MediaItem = Union[MovieItem, TVItem]
SearchItem = Union[MovieItem, TVItem, PersonItem]


def parse_item(raw: Dict[str, Any], default_media_type: str = "movie") -> SearchItem:
    """Parse a raw TMDB result into its typed item.

    ``media_type`` in the payload wins; otherwise the endpoint's type is used.
    TMDB sends ``null`` for some numeric fields, so those are dropped first.
    """
    data = {k: v for k, v in raw.items() if v is not None}
    media_type = data.get("media_type") or default_media_type
    data["media_type"] = media_type

    if media_type == "person":
        data["known_for"] = [
            parse_item(known, "movie")
            for known in data.get("known_for", [])
            if known.get("media_type", "movie") in ("movie", "tv")
        ]
        return PersonItem.model_validate(data)
    if media_type == "tv":
        return TVItem.model_validate(data)
    return MovieItem.model_validate(data)


def parse_items(raw_results: List[Dict[str, Any]], default_media_type: str) -> List[MediaItem]:
    """Parse a list of movie/TV results, skipping anything else."""
    items = []
    for raw in raw_results or []:
        item = parse_item(raw, default_media_type)
        if isinstance(item, (MovieItem, TVItem)):
            items.append(item)
    return items


class PageData(BaseModel):
    """Paginated list payload."""

    results: List[Union[MovieItem, TVItem]] = []
    page: Optional[int] = None
    total_results: int = 0
    total_pages: int = 0
    recently_added_count: Optional[int] = None


class PageEnvelope(BaseModel):
    """Uniform response shape of every category endpoint."""

    success: bool = True
    data: PageData
    category: str
    media_type: Optional[str] = None
    page: Optional[int] = None
    description: Optional[str] = None
    movie_page: Optional[int] = None
    tv_page: Optional[int] = None


# --- Detail pages ---


class Credits(BaseModel):
    id: int
    cast: List[Dict[str, Any]] = []
    crew: List[Dict[str, Any]] = []


class VideoList(BaseModel):
    id: int
    results: List[Dict[str, Any]] = []


class Recommendations(BaseModel):
    id: int
    page: int = 1
    total_pages: int = 0
    total_results: int = 0
    results: List[Dict[str, Any]] = []


class WatchProviders(BaseModel):
    id: int
    results: Dict[str, Any] = {}


class MovieDetails(BaseModel):
    """A movie with full TMDB data and its related sub-resources."""

    id: int
    title: str
    tagline: str = ""
    overview: str = ""
    poster_path: Optional[str] = None
    poster_url: Optional[str] = None
    backdrop_path: Optional[str] = None
    backdrop_url: Optional[str] = None
    release_date: Optional[str] = None
    vote_average: float = 0.0
    vote_count: int = 0
    genres: List[Dict[str, Any]] = []
    status: Optional[str] = None
    runtime: Optional[int] = None
    production_companies: List[Dict[str, Any]] = []
    original_language: Optional[str] = None
    revenue: int = 0
    budget: int = 0
    imdb_id: Optional[str] = None
    credits: Dict[str, Any] = {"cast": [], "crew": []}
    videos: Dict[str, Any] = {"results": []}
    recommendations: Dict[str, Any] = {"results": []}
    watch_providers: Dict[str, Any] = {"results": {}}


class TVDetails(BaseModel):
    """A TV series with full TMDB data and its related sub-resources."""

    id: int
    name: str
    tagline: str = ""
    overview: str = ""
    poster_path: Optional[str] = None
    poster_url: Optional[str] = None
    backdrop_path: Optional[str] = None
    backdrop_url: Optional[str] = None
    first_air_date: Optional[str] = None
    vote_average: float = 0.0
    vote_count: int = 0
    genres: List[Dict[str, Any]] = []
    status: str = ""  # e.g., "Returning Series", "Ended"
    number_of_seasons: int = 0
    number_of_episodes: int = 0
    networks: List[Dict[str, Any]] = []
    original_language: Optional[str] = None
    credits: Dict[str, Any] = {"cast": [], "crew": []}
    videos: Dict[str, Any] = {"results": []}
    recommendations: Dict[str, Any] = {"results": []}
    watch_providers: Dict[str, Any] = {"results": {}}


class DirectorMovies(BaseModel):
    director_id: int
    total_results: int = 0
    results: List[Dict[str, Any]] = []


# --- Search ---


class SearchPagination(BaseModel):
    page: int = 1
    total_pages: int = 1
    total_results: int = 0
    has_next_page: bool = False
    has_previous_page: bool = False


class SearchMetadata(BaseModel):
    result_count: int = 0
    filtered_count: int = 0
    search_timestamp: str


class SearchResponse(BaseModel):
    success: bool = True
    query: str = ""
    search_type: str
    results: List[SearchItem] = []
    pagination: SearchPagination
    metadata: SearchMetadata

"""Category service: turns category selectors into ranked, annotated pages.

Simple categories (mood, awards, studios, networks, genres) are a single
discover call. Trending, upcoming and streaming-now aggregate several TMDB
calls and rank the merged results.
"""

import asyncio
import logging
from datetime import date, timedelta
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar

from marquee.core.categories import resolve, to_provider_params
from marquee.core.config import Settings, get_settings
from marquee.core.errors import CategoryFetchError
from marquee.models.media import (
    MediaItem,
    MovieItem,
    PageData,
    PageEnvelope,
    TVItem,
    WatchProviderSummary,
    parse_items,
)
from marquee.services.batch import gather_outcomes, map_in_batches, successes
from marquee.services.dates import (
    add_months,
    days_since,
    days_until,
    format_api_date,
    format_release_date,
    is_upcoming,
)
from marquee.services.scoring import (
    STREAMING_FRESH_DAYS,
    STREAMING_PLATFORMS,
    StreamingPlatform,
    classify_ott,
    estimated_added_date,
    keep_streaming_candidate,
    primary_platform,
    streaming_release_score,
    streaming_sort_key,
    trending_score,
)
from marquee.services.tmdb import TMDBClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (first day ago, last day ago, minimum vote count); newer windows get lower floors.
STREAMING_WINDOWS = (
    (0, 3, 0),
    (4, 7, 1),
    (8, 14, 3),
    (15, 30, 5),
)

STREAMING_DESCRIPTION = (
    "Movies recently released straight to subscription streaming platforms"
)


def merge_unique(groups: Iterable[Iterable[MediaItem]]) -> List[MediaItem]:
    """Concatenate item lists, keeping the first item per (id, media_type)."""
    seen = set()
    merged = []
    for group in groups:
        for item in group:
            if item.identity in seen:
                continue
            seen.add(item.identity)
            merged.append(item)
    return merged


def _date_sort_key(item: MediaItem):
    released = item.primary_date
    return (released is None, released or date.max)


class CategoryService:
    """Builds category pages on top of :class:`TMDBClient`."""

    def __init__(
        self,
        client: TMDBClient,
        settings: Optional[Settings] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.client = client
        self.settings = settings or get_settings()
        self._today = today

    async def _required(self, category: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except Exception as exc:
            logger.error("Failed to fetch %s content: %s", category, exc)
            raise CategoryFetchError(category, exc) from exc

    @staticmethod
    def _envelope(
        category: str,
        items: List[MediaItem],
        response: Optional[Dict[str, Any]] = None,
        media_type: Optional[str] = None,
        page: Optional[int] = None,
    ) -> PageEnvelope:
        response = response or {}
        data = PageData(
            results=items,
            page=response.get("page", page),
            total_results=response.get("total_results", len(items)),
            total_pages=response.get("total_pages", 1),
        )
        return PageEnvelope(
            data=data, category=category, media_type=media_type, page=page
        )

    # --- Taglines ---

    async def enrich_with_taglines(self, items: List[MediaItem]) -> List[MediaItem]:
        """Attach each item's tagline; a failed lookup leaves it empty."""
        missing = [item for item in items if item.tagline is None]
        outcomes = await map_in_batches(
            lambda item: self.client.get_details(item.media_type, item.id),
            missing,
            self.settings.enrichment_batch_size,
            label=lambda item: f"{item.media_type}/{item.id}",
        )
        for item, outcome in zip(missing, outcomes):
            if outcome.ok:
                item.tagline = outcome.value.get("tagline") or ""
            else:
                logger.warning(
                    "Tagline lookup failed for %s: %s", outcome.label, outcome.error
                )
                item.tagline = ""
        return items

    # --- Simple categories ---

    async def _discover_category(
        self,
        category_type: str,
        category_key: str,
        label: str,
        page: int,
        media_type: Optional[str] = None,
    ) -> PageEnvelope:
        spec = resolve(category_type, category_key)
        media_type = media_type or spec.media_type
        params = {**to_provider_params(spec), "page": page}

        response = await self._required(
            label, self.client.discover(media_type, params)
        )
        items = parse_items(response.get("results", []), media_type)
        await self.enrich_with_taglines(items)
        return self._envelope(label, items, response, media_type=media_type, page=page)

    async def get_mood_content(self, mood: str, page: int = 1) -> PageEnvelope:
        return await self._discover_category("mood", mood, f"mood-{mood}", page)

    async def get_award_winners(self, award_type: str, page: int = 1) -> PageEnvelope:
        return await self._discover_category(
            "awards", award_type, f"awards-{award_type}", page
        )

    async def get_studio_content(self, studio: str, page: int = 1) -> PageEnvelope:
        return await self._discover_category("studios", studio, f"studio-{studio}", page)

    async def get_network_content(self, network: str, page: int = 1) -> PageEnvelope:
        return await self._discover_category(
            "networks", network, f"network-{network}", page
        )

    async def get_genre_content(
        self, genre: str, media_type: str = "movie", page: int = 1
    ) -> PageEnvelope:
        return await self._discover_category(
            "genres", genre, f"genre-{genre}", page, media_type=media_type
        )

    # --- Trending ---

    async def get_hot_tv_shows(self, page: int = 1) -> PageEnvelope:
        response = await self._required(
            "hot-tv-shows", self.client.get_trending("tv", "day", page=page)
        )
        items = parse_items(response.get("results", []), "tv")
        await self.enrich_with_taglines(items)
        return self._envelope("hot-tv-shows", items, response, media_type="tv", page=page)

    async def get_trending_movies(self) -> PageEnvelope:
        """Trending this week, merged from several pages into one ranked page."""
        pages = range(1, self.settings.trending_pages + 1)
        outcomes = await gather_outcomes(
            (self.client.get_trending("movie", "week", page=p) for p in pages),
            labels=[f"page {p}" for p in pages],
        )
        responses = successes(outcomes, "trending")
        if not responses:
            raise CategoryFetchError("trending-movies", outcomes[0].error)

        items = merge_unique(
            parse_items(response.get("results", []), "movie") for response in responses
        )
        items.sort(key=lambda item: item.popularity, reverse=True)

        today = self._today()
        for rank, item in enumerate(items, start=1):
            item.trending_rank = rank
            item.trending_score = trending_score(item, rank, today)

        await self.enrich_with_taglines(items)
        return self._envelope(
            "trending-movies",
            items,
            {"page": 1, "total_results": len(items), "total_pages": 1},
            media_type="movie",
            page=1,
        )

    # --- Upcoming ---

    @staticmethod
    def _annotate_release(item: MediaItem, today: date) -> None:
        formatted = format_release_date(item.primary_date_str)
        if isinstance(item, TVItem):
            item.first_air_date_formatted = formatted
        else:
            item.release_date_formatted = formatted
        item.is_upcoming = is_upcoming(item.primary_date_str, today)
        item.days_until_release = days_until(item.primary_date_str, today)

    async def get_anticipated_movies(self, page: int = 1) -> PageEnvelope:
        """Upcoming movies that have a confirmed release date today or later."""
        response = await self._required(
            "anticipated-movies", self.client.get_upcoming(page)
        )
        today = self._today()

        items = [
            item
            for item in parse_items(response.get("results", []), "movie")
            if item.primary_date is not None and item.primary_date >= today
        ]
        for item in items:
            self._annotate_release(item, today)
        await self.enrich_with_taglines(items)
        items.sort(key=_date_sort_key)

        return self._envelope(
            "anticipated-movies",
            items,
            {
                "page": response.get("page", page),
                "total_results": len(items),
                "total_pages": response.get("total_pages", 1),
            },
            media_type="movie",
            page=page,
        )

    async def get_upcoming_movies(self, page: int = 1) -> PageEnvelope:
        response = await self._required(
            "upcoming-movies", self.client.get_upcoming(page)
        )
        today = self._today()
        items = parse_items(response.get("results", []), "movie")
        for item in items:
            self._annotate_release(item, today)
        await self.enrich_with_taglines(items)
        return self._envelope(
            "upcoming-movies", items, response, media_type="movie", page=page
        )

    async def get_upcoming_tv(self, page: int = 1) -> PageEnvelope:
        """TV premiering in the next six months (TMDB has no upcoming TV list)."""
        today = self._today()
        params = {
            "first_air_date.gte": format_api_date(today),
            "first_air_date.lte": format_api_date(add_months(today, 6)),
            "sort_by": "first_air_date.asc",
            "page": page,
        }
        response = await self._required(
            "upcoming-tv", self.client.discover("tv", params)
        )
        items = parse_items(response.get("results", []), "tv")
        for item in items:
            self._annotate_release(item, today)
        await self.enrich_with_taglines(items)
        return self._envelope("upcoming-tv", items, response, media_type="tv", page=page)

    async def get_combined_upcoming(
        self, movie_page: int = 1, tv_page: int = 1
    ) -> PageEnvelope:
        """Upcoming movies and TV together; fails if either side fails."""
        try:
            movies, shows = await asyncio.gather(
                self.get_upcoming_movies(movie_page), self.get_upcoming_tv(tv_page)
            )
        except CategoryFetchError as exc:
            raise CategoryFetchError("upcoming-combined", exc.cause) from exc

        items = list(movies.data.results) + list(shows.data.results)
        items.sort(key=_date_sort_key)

        data = PageData(
            results=items,
            total_results=movies.data.total_results + shows.data.total_results,
            total_pages=max(movies.data.total_pages, shows.data.total_pages),
        )
        return PageEnvelope(
            data=data,
            category="upcoming-combined",
            movie_page=movie_page,
            tv_page=tv_page,
        )

    # --- Streaming now ---

    async def _discover_streaming(
        self,
        platform: StreamingPlatform,
        first_day: int,
        last_day: int,
        min_votes: int,
        today: date,
    ) -> List[MediaItem]:
        params = {
            "sort_by": "popularity.desc",
            "release_date.gte": format_api_date(today - timedelta(days=last_day)),
            "release_date.lte": format_api_date(today - timedelta(days=first_day)),
            "with_watch_providers": "|".join(str(i) for i in sorted(platform.provider_ids)),
            "watch_region": self.client.region,
            "with_watch_monetization_types": "flatrate",
            "vote_count.gte": min_votes,
            "page": 1,
        }
        response = await self.client.discover("movie", params)
        return parse_items(response.get("results", []), "movie")

    def _evaluate_streaming(
        self, candidate: MovieItem, details: Dict[str, Any], today: date
    ) -> Optional[MovieItem]:
        """Annotate a candidate, or return None if it is not a fresh OTT release."""
        days = days_since(candidate.primary_date, today)
        if days is None:
            return None

        item = candidate.model_copy(
            update={
                "production_companies": details.get("production_companies") or [],
                "tagline": details.get("tagline") or "",
            }
        )
        providers = WatchProviderSummary.from_tmdb(
            details.get("watch/providers"), self.client.region
        )
        signals = classify_ott(item, providers, days)
        if not signals:
            return None

        score = streaming_release_score(item, providers, days)
        if not keep_streaming_candidate(score, days):
            return None

        added = estimated_added_date(item, score, today)
        item.watch_providers = providers
        item.streaming_available = providers is not None and providers.has_subscription
        item.days_since_release = days
        item.is_ott_original = True
        item.ott_signals = signals
        item.streaming_release_score = score
        item.primary_streaming_platform = primary_platform(providers)
        item.streaming_added_date = format_api_date(added)
        item.streaming_added_date_formatted = format_release_date(
            item.streaming_added_date
        )
        item.streaming_added_date_estimated = True
        item.release_date_formatted = format_release_date(item.release_date)
        return item

    async def get_streaming_now(self) -> PageEnvelope:
        """Movies that look newly released straight to a streaming service."""
        today = self._today()
        limit = self.settings.streaming_max_results

        queries = [
            (platform, window)
            for window in STREAMING_WINDOWS
            for platform in STREAMING_PLATFORMS
        ]
        outcomes = await gather_outcomes(
            (self._discover_streaming(p, *window, today) for p, window in queries),
            labels=[f"{p.name} {w[0]}-{w[1]}d" for p, w in queries],
        )
        batches = successes(outcomes, "streaming window")
        if not batches:
            raise CategoryFetchError("streaming-now", outcomes[0].error)
        candidates = merge_unique(batches)

        qualified: List[MovieItem] = []
        batch_size = self.settings.enrichment_batch_size
        for start in range(0, len(candidates), batch_size):
            batch = candidates[start : start + batch_size]
            detail_outcomes = await gather_outcomes(
                (
                    self.client.get_details("movie", c.id, "watch/providers")
                    for c in batch
                ),
                labels=[f"movie/{c.id}" for c in batch],
            )
            by_id = {c.id: c for c in batch}
            for details in successes(detail_outcomes, "streaming candidate"):
                candidate = by_id.get(details.get("id"))
                if candidate is None:
                    continue
                item = self._evaluate_streaming(candidate, details, today)
                if item is not None:
                    qualified.append(item)
            if len(qualified) >= limit:
                break

        results = qualified[:limit]
        results.sort(key=streaming_sort_key)

        data = PageData(
            results=results,
            page=1,
            total_results=len(results),
            total_pages=1,
            recently_added_count=sum(
                1 for item in results if item.days_since_release <= STREAMING_FRESH_DAYS
            ),
        )
        return PageEnvelope(
            data=data,
            category="streaming-now",
            media_type="movie",
            page=1,
            description=STREAMING_DESCRIPTION,
        )

"""Search over TMDB with local filtering, sorting and response shaping."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from marquee.core.errors import NetworkError, SearchServiceError, TMDBError, ValidationError
from marquee.models.media import (
    SearchMetadata,
    SearchPagination,
    SearchResponse,
    parse_item,
)
from marquee.services.dates import parse_date
from marquee.services.tmdb import TMDBClient

logger = logging.getLogger(__name__)

MAX_PAGE = 1000
SORT_OPTIONS = ("popularity", "rating", "date", "title")
UNDATED = date(1900, 1, 1)


@dataclass
class SearchOptions:
    include_adult: bool = False
    min_vote_count: int = 0
    min_rating: float = 0
    sort_by: Optional[str] = None


def _title(raw: Dict[str, Any]) -> str:
    return raw.get("title") or raw.get("name") or ""


def _date(raw: Dict[str, Any]) -> date:
    return parse_date(raw.get("release_date") or raw.get("first_air_date")) or UNDATED


def filter_results(
    results: List[Dict[str, Any]], options: SearchOptions
) -> List[Dict[str, Any]]:
    """Drop adult titles and those under the vote count or rating floors."""
    filtered = results
    if not options.include_adult:
        filtered = [r for r in filtered if not r.get("adult")]
    if options.min_vote_count > 0:
        filtered = [
            r for r in filtered if (r.get("vote_count") or 0) >= options.min_vote_count
        ]
    if options.min_rating > 0:
        filtered = [
            r for r in filtered if (r.get("vote_average") or 0) >= options.min_rating
        ]
    return filtered


def sort_results(
    results: List[Dict[str, Any]], sort_by: Optional[str]
) -> List[Dict[str, Any]]:
    """Sort by the named key; unknown or empty keys keep TMDB's order."""
    if sort_by == "popularity":
        return sorted(results, key=lambda r: r.get("popularity") or 0, reverse=True)
    if sort_by == "rating":
        return sorted(results, key=lambda r: r.get("vote_average") or 0, reverse=True)
    if sort_by == "date":
        return sorted(results, key=_date, reverse=True)
    if sort_by == "title":
        return sorted(results, key=lambda r: _title(r).lower())
    return list(results)


class SearchService:
    def __init__(self, client: TMDBClient) -> None:
        self.client = client

    async def search_multi(
        self, query: str, page: int = 1, options: Optional[SearchOptions] = None
    ) -> SearchResponse:
        return await self._search("multi", query, page, options)

    async def search_movies(
        self, query: str, page: int = 1, options: Optional[SearchOptions] = None
    ) -> SearchResponse:
        return await self._search("movie", query, page, options)

    async def search_tv(
        self, query: str, page: int = 1, options: Optional[SearchOptions] = None
    ) -> SearchResponse:
        return await self._search("tv", query, page, options)

    async def _search(
        self, kind: str, query: str, page: int, options: Optional[SearchOptions]
    ) -> SearchResponse:
        query = (query or "").strip()
        if not query:
            raise ValidationError("Search query cannot be empty")
        if not 1 <= page <= MAX_PAGE:
            raise ValidationError(f"Page must be between 1 and {MAX_PAGE}")
        options = options or SearchOptions()

        try:
            data = await self.client.search(kind, query, page=page)
        except NetworkError as exc:
            logger.error("Search for '%s' failed: %s", query, exc)
            raise SearchServiceError(
                "Search service temporarily unavailable", original_exception=exc
            ) from exc
        except TMDBError as exc:
            logger.error("Search for '%s' failed: %s", query, exc)
            raise SearchServiceError(
                f"Search failed: {exc.message}", original_exception=exc
            ) from exc

        raw_results = data.get("results") or []
        filtered = sort_results(filter_results(raw_results, options), options.sort_by)
        default_type = "movie" if kind == "multi" else kind

        current = data.get("page", page)
        total_pages = data.get("total_pages", 0)
        return SearchResponse(
            query=query,
            search_type=kind,
            results=[parse_item(raw, default_type) for raw in filtered],
            pagination=SearchPagination(
                page=current,
                total_pages=total_pages,
                total_results=data.get("total_results", 0),
                has_next_page=current < total_pages,
                has_previous_page=current > 1,
            ),
            metadata=SearchMetadata(
                result_count=len(raw_results),
                filtered_count=len(filtered),
                search_timestamp=datetime.now(timezone.utc).isoformat(),
            ),
        )

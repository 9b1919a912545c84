"""Search routes."""

import re
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from marquee.api.deps import get_search_service
from marquee.api.params import Page
from marquee.core.errors import ValidationError
from marquee.models.media import SearchResponse
from marquee.services.search import SearchOptions, SearchService

router = APIRouter(prefix="/search", tags=["search"])

UNSAFE_QUERY = re.compile(r"<script|javascript:|on\w+\s*=|data:text/html", re.I)


def search_query(
    query: str = Query(..., min_length=1, max_length=200, description="Search query"),
) -> str:
    query = query.strip()
    if not query:
        raise ValidationError("Search query cannot be empty")
    if UNSAFE_QUERY.search(query):
        raise ValidationError("Search query contains invalid characters")
    return query


def search_options(
    include_adult: bool = False,
    min_vote_count: int = Query(0, ge=0, le=10000),
    min_rating: float = Query(0, ge=0, le=10),
    sort_by: Optional[Literal["popularity", "rating", "date", "title"]] = None,
) -> SearchOptions:
    return SearchOptions(
        include_adult=include_adult,
        min_vote_count=min_vote_count,
        min_rating=min_rating,
        sort_by=sort_by,
    )


@router.get("/multi", response_model=SearchResponse)
async def search_multi(
    query: str = Depends(search_query),
    page: Page = 1,
    options: SearchOptions = Depends(search_options),
    service: SearchService = Depends(get_search_service),
):
    """Search movies, TV shows and people at once."""
    return await service.search_multi(query, page, options)


@router.get("/movies", response_model=SearchResponse)
async def search_movies(
    query: str = Depends(search_query),
    page: Page = 1,
    options: SearchOptions = Depends(search_options),
    service: SearchService = Depends(get_search_service),
):
    return await service.search_movies(query, page, options)


@router.get("/tv", response_model=SearchResponse)
async def search_tv(
    query: str = Depends(search_query),
    page: Page = 1,
    options: SearchOptions = Depends(search_options),
    service: SearchService = Depends(get_search_service),
):
    return await service.search_tv(query, page, options)

"""Category routes: curated, trending, upcoming and streaming lists."""

from fastapi import APIRouter, Depends, Query

from marquee.api.deps import get_category_service
from marquee.api.params import CategoryKey, MediaTypeName, Page
from marquee.models.media import PageEnvelope
from marquee.services.category import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("/trending/movies", response_model=PageEnvelope)
async def trending_movies(service: CategoryService = Depends(get_category_service)):
    """Trending movies this week, merged across several pages and ranked."""
    return await service.get_trending_movies()


@router.get("/trending/tv", response_model=PageEnvelope)
async def hot_tv_shows(
    page: Page = 1, service: CategoryService = Depends(get_category_service)
):
    return await service.get_hot_tv_shows(page)


@router.get("/upcoming/movies", response_model=PageEnvelope)
async def anticipated_movies(
    page: Page = 1, service: CategoryService = Depends(get_category_service)
):
    """Upcoming movies with a confirmed future release date."""
    return await service.get_anticipated_movies(page)


@router.get("/streaming/now", response_model=PageEnvelope)
async def streaming_now(service: CategoryService = Depends(get_category_service)):
    """Films that recently premiered on subscription streaming platforms."""
    return await service.get_streaming_now()


@router.get("/mood/{key}", response_model=PageEnvelope)
async def mood(
    key: CategoryKey,
    page: Page = 1,
    service: CategoryService = Depends(get_category_service),
):
    return await service.get_mood_content(key, page)


@router.get("/awards/{key}", response_model=PageEnvelope)
async def awards(
    key: CategoryKey,
    page: Page = 1,
    service: CategoryService = Depends(get_category_service),
):
    return await service.get_award_winners(key, page)


@router.get("/studio/{key}", response_model=PageEnvelope)
async def studio(
    key: CategoryKey,
    page: Page = 1,
    service: CategoryService = Depends(get_category_service),
):
    return await service.get_studio_content(key, page)


@router.get("/network/{key}", response_model=PageEnvelope)
async def network(
    key: CategoryKey,
    page: Page = 1,
    service: CategoryService = Depends(get_category_service),
):
    return await service.get_network_content(key, page)


@router.get("/genre/{key}", response_model=PageEnvelope)
async def genre(
    key: CategoryKey,
    media_type: MediaTypeName = Query("movie", alias="type"),
    page: Page = 1,
    service: CategoryService = Depends(get_category_service),
):
    return await service.get_genre_content(key, media_type, page)

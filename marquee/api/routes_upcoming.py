"""Upcoming release routes."""

from fastapi import APIRouter, Depends

from marquee.api.deps import get_category_service
from marquee.api.params import Page
from marquee.models.media import PageEnvelope
from marquee.services.category import CategoryService

router = APIRouter(prefix="/upcoming", tags=["upcoming"])


@router.get("", response_model=PageEnvelope)
async def combined_upcoming(
    movie_page: Page = 1,
    tv_page: Page = 1,
    service: CategoryService = Depends(get_category_service),
):
    """Upcoming movies and TV premieres in release order."""
    return await service.get_combined_upcoming(movie_page, tv_page)


@router.get("/movies", response_model=PageEnvelope)
async def upcoming_movies(
    page: Page = 1, service: CategoryService = Depends(get_category_service)
):
    return await service.get_upcoming_movies(page)


@router.get("/tv", response_model=PageEnvelope)
async def upcoming_tv(
    page: Page = 1, service: CategoryService = Depends(get_category_service)
):
    return await service.get_upcoming_tv(page)

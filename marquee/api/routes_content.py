"""Detail routes for movies, TV series and directors."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path

from marquee.api.deps import get_content_service
from marquee.api.params import MediaTypeName, Page, TmdbId
from marquee.services.content import ContentService

router = APIRouter(tags=["content"])

MediaTypePath = Annotated[MediaTypeName, Path(description="movie or tv")]


@router.get("/movie/{tmdb_id}")
async def movie_details(
    tmdb_id: TmdbId, service: ContentService = Depends(get_content_service)
):
    """Movie details with credits, videos, recommendations and watch providers."""
    return {"success": True, "data": await service.get_movie_details(tmdb_id)}


@router.get("/tv/{tmdb_id}")
async def tv_details(
    tmdb_id: TmdbId, service: ContentService = Depends(get_content_service)
):
    """TV series details with credits, videos, recommendations and watch providers."""
    return {"success": True, "data": await service.get_tv_details(tmdb_id)}


@router.get("/person/{tmdb_id}/movies")
async def director_movies(
    tmdb_id: TmdbId, service: ContentService = Depends(get_content_service)
):
    return {"success": True, "data": await service.get_director_movies(tmdb_id)}


@router.get("/{media_type}/{tmdb_id}/credits")
async def credits(
    media_type: MediaTypePath,
    tmdb_id: TmdbId,
    service: ContentService = Depends(get_content_service),
):
    return {"success": True, "data": await service.get_credits(tmdb_id, media_type)}


@router.get("/{media_type}/{tmdb_id}/videos")
async def videos(
    media_type: MediaTypePath,
    tmdb_id: TmdbId,
    service: ContentService = Depends(get_content_service),
):
    return {"success": True, "data": await service.get_videos(tmdb_id, media_type)}


@router.get("/{media_type}/{tmdb_id}/recommendations")
async def recommendations(
    media_type: MediaTypePath,
    tmdb_id: TmdbId,
    page: Page = 1,
    service: ContentService = Depends(get_content_service),
):
    data = await service.get_recommendations(tmdb_id, media_type, page)
    return {"success": True, "data": data}


@router.get("/{media_type}/{tmdb_id}/watch-providers")
async def watch_providers(
    media_type: MediaTypePath,
    tmdb_id: TmdbId,
    service: ContentService = Depends(get_content_service),
):
    data = await service.get_watch_providers(tmdb_id, media_type)
    return {"success": True, "data": data}

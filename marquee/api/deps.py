"""FastAPI dependencies that build services around the shared TMDB client."""

from fastapi import Depends

from marquee.core.config import Settings, get_settings
from marquee.services.category import CategoryService
from marquee.services.content import ContentService
from marquee.services.search import SearchService
from marquee.services.tmdb import TMDBClient, get_tmdb_client


def get_category_service(
    client: TMDBClient = Depends(get_tmdb_client),
    settings: Settings = Depends(get_settings),
) -> CategoryService:
    return CategoryService(client, settings)


def get_content_service(client: TMDBClient = Depends(get_tmdb_client)) -> ContentService:
    return ContentService(client)


def get_search_service(client: TMDBClient = Depends(get_tmdb_client)) -> SearchService:
    return SearchService(client)

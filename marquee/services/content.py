"""Detail pages for a single movie, TV series or director."""

import asyncio
import logging
from datetime import date
from typing import Any, Dict, List

from marquee.core.errors import ContentServiceError, ValidationError
from marquee.models.media import (
    Credits,
    DirectorMovies,
    MovieDetails,
    Recommendations,
    TVDetails,
    VideoList,
    WatchProviders,
)
from marquee.services.dates import parse_date
from marquee.services.tmdb import MEDIA_TYPES, TMDBClient

logger = logging.getLogger(__name__)

UNDATED = date(1900, 1, 1)

_VIDEO_TYPE_ORDER = {"Trailer": 0, "Teaser": 1}


def _validate(tmdb_id: int, media_type: str = "movie") -> None:
    if not isinstance(tmdb_id, int) or tmdb_id < 1:
        raise ValidationError("Invalid ID: must be a positive integer")
    if media_type not in MEDIA_TYPES:
        raise ValidationError('Media type must be "movie" or "tv"')


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def sort_videos(videos: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Trailers first, then teasers, then everything else (stable)."""
    return sorted(videos, key=lambda v: _VIDEO_TYPE_ORDER.get(v.get("type"), 2))


class ContentService:
    def __init__(self, client: TMDBClient) -> None:
        self.client = client

    async def _get_full_details(self, media_type: str, tmdb_id: int) -> Dict[str, Any]:
        """Fetch details and every sub-resource; any failure fails the whole page."""
        _validate(tmdb_id, media_type)
        try:
            info, credits, videos, recommendations, providers = await asyncio.gather(
                self.client.get_details(media_type, tmdb_id),
                self.client.get_credits(media_type, tmdb_id),
                self.client.get_videos(media_type, tmdb_id),
                self.client.get_recommendations(media_type, tmdb_id),
                self.client.get_watch_providers(media_type, tmdb_id),
            )
        except Exception as exc:
            logger.error("Failed to fetch %s %s details: %s", media_type, tmdb_id, exc)
            raise ContentServiceError(
                f"Failed to fetch {media_type} details", original_exception=exc
            ) from exc

        videos = dict(videos or {})
        videos["results"] = sort_videos(videos.get("results") or [])
        return {
            **_compact(info),
            "credits": credits or {"cast": [], "crew": []},
            "videos": videos,
            "recommendations": recommendations or {"results": []},
            "watch_providers": providers or {"results": {}},
        }

    async def get_movie_details(self, tmdb_id: int) -> MovieDetails:
        data = await self._get_full_details("movie", tmdb_id)
        return MovieDetails.model_validate(data)

    async def get_tv_details(self, tmdb_id: int) -> TVDetails:
        data = await self._get_full_details("tv", tmdb_id)
        return TVDetails.model_validate(data)

    async def get_credits(self, tmdb_id: int, media_type: str = "movie") -> Credits:
        _validate(tmdb_id, media_type)
        data = await self.client.get_credits(media_type, tmdb_id)
        return Credits.model_validate({"id": tmdb_id, **_compact(data)})

    async def get_videos(self, tmdb_id: int, media_type: str = "movie") -> VideoList:
        _validate(tmdb_id, media_type)
        data = await self.client.get_videos(media_type, tmdb_id)
        return VideoList(id=tmdb_id, results=sort_videos(data.get("results") or []))

    async def get_recommendations(
        self, tmdb_id: int, media_type: str = "movie", page: int = 1
    ) -> Recommendations:
        _validate(tmdb_id, media_type)
        data = await self.client.get_recommendations(media_type, tmdb_id, page=page)
        return Recommendations.model_validate({"id": tmdb_id, **_compact(data)})

    async def get_watch_providers(
        self, tmdb_id: int, media_type: str = "movie"
    ) -> WatchProviders:
        _validate(tmdb_id, media_type)
        data = await self.client.get_watch_providers(media_type, tmdb_id)
        return WatchProviders.model_validate({"id": tmdb_id, **_compact(data)})

    async def get_director_movies(self, person_id: int) -> DirectorMovies:
        """Movies a person directed, newest first and then by popularity."""
        _validate(person_id)
        data = await self.client.get_person_movie_credits(person_id)

        directed = [
            movie for movie in data.get("crew") or [] if movie.get("job") == "Director"
        ]
        directed.sort(
            key=lambda m: (
                parse_date(m.get("release_date")) or UNDATED,
                m.get("popularity") or 0,
            ),
            reverse=True,
        )
        return DirectorMovies(
            director_id=person_id, total_results=len(directed), results=directed
        )

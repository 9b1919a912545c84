"""TMDB client used by the category, content and search services."""

import asyncio
import logging
from functools import lru_cache
from typing import Any, Callable, Dict, Optional

import requests
import tmdbsimple as tmdb
from cachetools import TTLCache

from marquee.core.config import Settings, get_settings
from marquee.core.errors import NetworkError, TMDBError, ValidationError
from marquee.core.rate_limit import SlidingWindowLimiter

logger = logging.getLogger(__name__)

IMAGE_BASE_URL = "https://image.tmdb.org/t/p/"

MEDIA_TYPES = ("movie", "tv")
SEARCH_KINDS = ("multi", "movie", "tv")


def image_url(path: Optional[str], size: str = "original") -> Optional[str]:
    """Build a full image URL from a TMDB image path."""
    if not path:
        return None
    return f"{IMAGE_BASE_URL}{size}{path}"


def with_image_urls(data: Any) -> Any:
    """Add ``poster_url``/``backdrop_url``/``profile_url`` next to TMDB image paths.

    Walks ``results``, ``cast`` and ``crew`` lists recursively.
    """
    if not isinstance(data, dict):
        return data

    if data.get("poster_path"):
        data["poster_url"] = image_url(data["poster_path"], "w500")
    if data.get("backdrop_path"):
        data["backdrop_url"] = image_url(data["backdrop_path"], "w1280")
    if data.get("profile_path"):
        data["profile_url"] = image_url(data["profile_path"], "w185")

    for key in ("results", "cast", "crew", "known_for"):
        if isinstance(data.get(key), list):
            data[key] = [with_image_urls(item) for item in data[key]]
    return data


def _check_media_type(media_type: str) -> None:
    if media_type not in MEDIA_TYPES:
        raise ValidationError('Media type must be "movie" or "tv"')


def _media_api(media_type: str, tmdb_id: int = 0):
    _check_media_type(media_type)
    return tmdb.Movies(tmdb_id) if media_type == "movie" else tmdb.TV(tmdb_id)


class TMDBClient:
    """Async facade over tmdbsimple.

    Every call passes through the shared sliding-window limiter before the
    blocking tmdbsimple request is run on a worker thread.
    """

    def __init__(
        self,
        limiter: SlidingWindowLimiter,
        region: str = "US",
        details_cache_ttl: int = 1800,
    ) -> None:
        self.limiter = limiter
        self.region = region
        self._details_cache: TTLCache = TTLCache(maxsize=500, ttl=details_cache_ttl)

    async def _request(
        self, label: str, func: Callable[..., Dict[str, Any]], **kwargs: Any
    ) -> Dict[str, Any]:
        await self.limiter.acquire()
        try:
            data = await asyncio.to_thread(func, **kwargs)
        except requests.exceptions.HTTPError as exc:
            raise self._http_error(label, exc) from exc
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as exc:
            logger.error("Network error calling TMDB %s: %s", label, exc)
            raise NetworkError(original_exception=exc) from exc
        except requests.exceptions.RequestException as exc:
            logger.error("Request error calling TMDB %s: %s", label, exc)
            raise TMDBError("Request setup error", exc) from exc
        except Exception as exc:
            logger.exception("Unexpected error calling TMDB %s: %s", label, exc)
            raise TMDBError(f"Unexpected TMDB failure for {label}", exc) from exc
        return with_image_urls(data)

    @staticmethod
    def _http_error(label: str, exc: requests.exceptions.HTTPError) -> TMDBError:
        response = exc.response
        status = response.status_code if response is not None else None
        body: Dict[str, Any] = {}
        if response is not None:
            try:
                body = response.json()
            except ValueError:
                body = {}
        logger.error("TMDB %s failed with status %s: %s", label, status, body)
        return TMDBError(
            body.get("status_message") or "TMDB API Error",
            exc,
            status=status,
            tmdb_code=body.get("status_code"),
        )

    # --- Lists ---

    async def discover(self, media_type: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Discover movies or TV shows matching filter parameters."""
        _check_media_type(media_type)
        api = tmdb.Discover()
        func = api.movie if media_type == "movie" else api.tv
        return await self._request(f"discover/{media_type}", func, **params)

    async def get_trending(
        self, media_type: str = "all", window: str = "day", page: int = 1
    ) -> Dict[str, Any]:
        api = tmdb.Trending(media_type=media_type, time_window=window)
        return await self._request(
            f"trending/{media_type}/{window}", api.info, page=page
        )

    async def get_upcoming(self, page: int = 1) -> Dict[str, Any]:
        return await self._request("movie/upcoming", tmdb.Movies().upcoming, page=page)

    # --- Single titles ---

    async def get_details(
        self, media_type: str, tmdb_id: int, append_to_response: str = ""
    ) -> Dict[str, Any]:
        """Fetch full details for a title (cached)."""
        cache_key = (media_type, tmdb_id, append_to_response)
        if cache_key in self._details_cache:
            return self._details_cache[cache_key]

        api = _media_api(media_type, tmdb_id)
        params = {"append_to_response": append_to_response} if append_to_response else {}
        data = await self._request(f"{media_type}/{tmdb_id}", api.info, **params)
        self._details_cache[cache_key] = data
        return data

    async def get_credits(self, media_type: str, tmdb_id: int) -> Dict[str, Any]:
        api = _media_api(media_type, tmdb_id)
        return await self._request(f"{media_type}/{tmdb_id}/credits", api.credits)

    async def get_videos(self, media_type: str, tmdb_id: int) -> Dict[str, Any]:
        api = _media_api(media_type, tmdb_id)
        return await self._request(f"{media_type}/{tmdb_id}/videos", api.videos)

    async def get_recommendations(
        self, media_type: str, tmdb_id: int, page: int = 1
    ) -> Dict[str, Any]:
        api = _media_api(media_type, tmdb_id)
        return await self._request(
            f"{media_type}/{tmdb_id}/recommendations", api.recommendations, page=page
        )

    async def get_watch_providers(self, media_type: str, tmdb_id: int) -> Dict[str, Any]:
        api = _media_api(media_type, tmdb_id)
        return await self._request(
            f"{media_type}/{tmdb_id}/watch/providers", api.watch_providers
        )

    async def get_person_movie_credits(self, person_id: int) -> Dict[str, Any]:
        api = tmdb.People(person_id)
        return await self._request(f"person/{person_id}/movie_credits", api.movie_credits)

    # --- Search ---

    async def search(self, kind: str, query: str, page: int = 1) -> Dict[str, Any]:
        """Search TMDB; ``kind`` is multi, movie or tv."""
        if kind not in SEARCH_KINDS:
            raise ValidationError(f"Unsupported search type: {kind}")
        api = tmdb.Search()
        return await self._request(f"search/{kind}", getattr(api, kind), query=query, page=page)


def configure_tmdbsimple(settings: Settings) -> None:
    """Point tmdbsimple at our key, timeout and (optional) proxy."""
    if not settings.tmdb_api_key:
        logger.warning("TMDB_API_KEY is not set; TMDB requests will fail")
    tmdb.API_KEY = settings.tmdb_api_key
    tmdb.REQUESTS_TIMEOUT = settings.tmdb_timeout

    session = requests.Session()
    if settings.proxy:
        session.proxies = {"http": settings.proxy, "https": settings.proxy}
    tmdb.REQUESTS_SESSION = session


@lru_cache
def get_tmdb_client() -> TMDBClient:
    """Get the process-wide TMDB client (shares one rate window)."""
    settings = get_settings()
    configure_tmdbsimple(settings)
    limiter = SlidingWindowLimiter(
        settings.tmdb_rate_limit_requests, settings.tmdb_rate_limit_window
    )
    return TMDBClient(
        limiter,
        region=settings.tmdb_region,
        details_cache_ttl=settings.details_cache_ttl,
    )

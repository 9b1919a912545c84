import os
from unittest.mock import AsyncMock

import pytest

os.environ.setdefault("TMDB_API_KEY", "test-key")
os.environ.setdefault("ENVIRONMENT", "test")

from marquee.core.config import Settings, get_settings  # noqa: E402
from marquee.services.tmdb import TMDBClient, get_tmdb_client  # noqa: E402


@pytest.fixture(autouse=True)
def clear_cached_singletons():
    get_settings.cache_clear()
    get_tmdb_client.cache_clear()
    yield
    get_settings.cache_clear()
    get_tmdb_client.cache_clear()


@pytest.fixture
def settings():
    return Settings(tmdb_api_key="test-key", trending_pages=2, enrichment_batch_size=5)


@pytest.fixture
def fake_client():
    """A TMDBClient stand-in whose async methods are AsyncMocks."""
    client = AsyncMock(spec=TMDBClient)
    client.region = "US"
    client.get_details.return_value = {"tagline": "A tagline"}
    return client

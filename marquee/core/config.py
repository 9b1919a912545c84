"""Configuration management for Marquee."""

from functools import lru_cache
from typing import List, Literal
from urllib.parse import urlparse

from pydantic import PositiveFloat, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # TMDB
    tmdb_api_key: str = ""
    tmdb_region: str = "US"
    tmdb_timeout: PositiveInt = 10  # Outbound request timeout in seconds

    # TMDB allows 40 requests per 10 seconds
    tmdb_rate_limit_requests: PositiveInt = 40
    tmdb_rate_limit_window: PositiveFloat = 10.0

    details_cache_ttl: PositiveInt = 1800

    # Aggregation tuning
    enrichment_batch_size: PositiveInt = 5
    trending_pages: PositiveInt = 5
    streaming_max_results: PositiveInt = 20

    # CORS
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
        "http://localhost:8080",
    ]

    # Network settings
    # Proxy configuration in the format http://host:port or socks5://host:port
    proxy: str | None = None

    @field_validator("proxy")
    @classmethod
    def validate_proxy(cls, v: str | None) -> str | None:
        if v is None:
            return v

        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https", "socks4", "socks5", "socks5h"):
            raise ValueError(
                "Proxy must be a valid URL with scheme http/https/socks4/socks5/socks5h"
            )
        if not parsed.netloc:
            raise ValueError("Proxy must have a host and port")
        return v

    @field_validator("tmdb_region")
    @classmethod
    def validate_region(cls, v: str) -> str:
        if len(v) != 2 or not v.isalpha():
            raise ValueError("Region must be a two-letter ISO 3166-1 code")
        return v.upper()

    # App settings
    environment: Literal["development", "production", "test"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    debug: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

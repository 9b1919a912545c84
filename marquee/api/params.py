"""Shared request parameters for the API routers."""

from typing import Annotated, Literal

from fastapi import Path, Query

Page = Annotated[int, Query(ge=1, le=1000, description="Result page (1-1000)")]
TmdbId = Annotated[int, Path(ge=1, le=999999999, description="TMDB id")]
CategoryKey = Annotated[
    str,
    Path(min_length=1, max_length=50, pattern=r"^[a-z0-9-]+$", description="Category key"),
]
MediaTypeName = Literal["movie", "tv"]

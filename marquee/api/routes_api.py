"""Service-level routes: health check and the category catalogue."""

from datetime import datetime, timezone

from fastapi import APIRouter

from marquee.core.categories import CATEGORY_OVERVIEW
from marquee.core.security import API_VERSION

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "OK",
        "message": "Marquee API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": API_VERSION,
    }


@router.get("/api/categories")
async def list_categories():
    """Every category section with its subcategories and endpoints."""
    return {"success": True, "data": CATEGORY_OVERVIEW}

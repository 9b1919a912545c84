import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from marquee.api.routes_api import router as service_router
from marquee.api.routes_categories import router as categories_router
from marquee.api.routes_content import router as content_router
from marquee.api.routes_search import router as search_router
from marquee.api.routes_upcoming import router as upcoming_router
from marquee.core.config import get_settings
from marquee.core.errors import (
    APIError,
    InvalidRequestError,
    NotFoundError,
    RateLimitError,
    ServiceUnavailableError,
)
from marquee.core.security import (
    API_VERSION,
    ClientRateLimitMiddleware,
    RequestGuardMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    api_error_response,
    error_response,
)
from marquee.services.tmdb import get_tmdb_client

load_dotenv()

logger = logging.getLogger(__name__)

_HTTP_ERRORS = {
    400: InvalidRequestError,
    404: NotFoundError,
    429: RateLimitError,
    503: ServiceUnavailableError,
}


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    """Application lifespan context manager."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Configure tmdbsimple and the shared rate window up front
    get_tmdb_client()
    logger.info("Marquee started in %s mode", settings.environment)
    yield
    logger.info("Marquee shutting down")


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.code, request.url.path, exc.message)
    else:
        logger.warning("%s on %s: %s", exc.code, request.url.path, exc.message)

    body = exc.to_dict()
    if not get_settings().is_production and exc.original_exception is not None:
        details = body["error"]["details"]
        if details is None:
            body["error"]["details"] = str(exc.original_exception)
        elif isinstance(details, dict):
            details.setdefault("cause", str(exc.original_exception))
    return JSONResponse(status_code=exc.status_code, content=body)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.warning("VALIDATION_ERROR on %s", request.url.path)
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]),
            "message": err.get("msg"),
            "value": err.get("input"),
        }
        for err in exc.errors()
    ]
    return error_response(
        400, "VALIDATION_ERROR", "Validation failed", details=jsonable_encoder(details)
    )


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    error_class = _HTTP_ERRORS.get(exc.status_code)
    if error_class is None:
        code = "METHOD_NOT_ALLOWED" if exc.status_code == 405 else "SERVER_ERROR"
        logger.warning("%s on %s", code, request.url.path)
        return error_response(exc.status_code, code, str(exc.detail))

    if error_class is NotFoundError:
        error = NotFoundError(f"Route {request.method} {request.url.path} not found")
    else:
        error = error_class(str(exc.detail))
    logger.warning("%s on %s", error.code, request.url.path)
    return api_error_response(error)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s: %s", request.url.path, exc)
    return error_response(500, "SERVER_ERROR", "An unexpected error occurred")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Marquee",
        description="Curated, category-organized movie and TV API on top of TMDB",
        version=API_VERSION,
        debug=settings.debug,
        lifespan=app_lifespan,
    )

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Last added runs first
    app.add_middleware(ClientRateLimitMiddleware)
    app.add_middleware(RequestGuardMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(service_router)
    app.include_router(categories_router, prefix="/api")
    app.include_router(upcoming_router, prefix="/api")
    app.include_router(search_router, prefix="/api")
    app.include_router(content_router, prefix="/api")
    return app


app = create_app()

"""Inbound protection middlewares: headers, request guards, per-client limits.

The guards run before routing, so they answer with the same JSON error
envelope as :class:`marquee.core.errors.APIError` themselves.
"""

import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple

from aiolimiter import AsyncLimiter
from cachetools import TTLCache
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse, Response

from marquee.core.config import get_settings
from marquee.core.errors import APIError, RateLimitError

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
MAX_CONTENT_LENGTH = 1024 * 1024
EXEMPT_PATHS = ("/health",)

BLOCKED_USER_AGENTS = re.compile(r"curl|wget|python|bot|crawler|spider|scraper", re.I)

SECURITY_HEADERS = {
    "X-API-Version": API_VERSION,
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
    "Referrer-Policy": "same-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
    "Content-Security-Policy": (
        "default-src 'self'; img-src 'self' data: https://image.tmdb.org; "
        "object-src 'none'; frame-ancestors 'none'"
    ),
}


def error_response(
    status_code: int, code: str, message: str, **extra
) -> JSONResponse:
    """JSON error envelope for requests rejected before routing."""
    error = {"code": code, "message": message, **extra}
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def api_error_response(exc: APIError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds hardening headers to every response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class RequestGuardMiddleware(BaseHTTPMiddleware):
    """Rejects oversized bodies and missing or (in production) scripted user agents."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Allow health check unconditionally (monitoring/docker)
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        content_length = request.headers.get("Content-Length")
        if content_length and content_length.isdigit():
            if int(content_length) > MAX_CONTENT_LENGTH:
                return error_response(
                    413, "PAYLOAD_TOO_LARGE", "Request payload too large"
                )

        user_agent = request.headers.get("User-Agent")
        if not user_agent:
            return error_response(
                400, "MISSING_USER_AGENT", "User-Agent header is required"
            )

        if get_settings().is_production and BLOCKED_USER_AGENTS.search(user_agent):
            logger.warning(
                "Blocked user agent %r from %s", user_agent, client_ip(request)
            )
            return error_response(403, "FORBIDDEN_USER_AGENT", "Access denied")

        return await call_next(request)


@dataclass(frozen=True)
class ClientLimit:
    """A per-client request budget over a fixed period."""

    name: str
    max_rate: int
    period: float
    code: str
    message: str
    retry_after: str
    path_prefixes: Tuple[str, ...] = ()

    def applies_to(self, path: str) -> bool:
        if not self.path_prefixes:
            return True
        return path.startswith(self.path_prefixes)


CLIENT_LIMITS = (
    ClientLimit(
        "general",
        1000,
        15 * 60,
        "RATE_LIMIT_EXCEEDED",
        "Too many requests from this IP, please try again later.",
        "15 minutes",
    ),
    ClientLimit(
        "search",
        100,
        5 * 60,
        "SEARCH_RATE_LIMIT_EXCEEDED",
        "Too many search requests, please try again later.",
        "5 minutes",
        ("/api/search",),
    ),
    ClientLimit(
        "content",
        60,
        60,
        "CONTENT_RATE_LIMIT_EXCEEDED",
        "Too many content requests, please try again later.",
        "1 minute",
        ("/api/movie", "/api/tv"),
    ),
)


class ClientRateLimitMiddleware(BaseHTTPMiddleware):
    """Per-client-ip throttling with one ``AsyncLimiter`` per budget and client."""

    def __init__(self, app, limits: Tuple[ClientLimit, ...] = CLIENT_LIMITS):
        super().__init__(app)
        self.limits = limits
        # Idle clients drop out after one period
        self._limiters = {
            limit.name: TTLCache(maxsize=10000, ttl=limit.period) for limit in limits
        }

    def _limiter(self, limit: ClientLimit, ip: str) -> AsyncLimiter:
        cache = self._limiters[limit.name]
        limiter = cache.get(ip)
        if limiter is None:
            limiter = AsyncLimiter(limit.max_rate, limit.period)
            cache[ip] = limiter
        return limiter

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        ip = client_ip(request)
        applicable = [
            (limit, self._limiter(limit, ip))
            for limit in self.limits
            if limit.applies_to(request.url.path)
        ]
        # Check every budget before spending any of them
        for limit, limiter in applicable:
            if not limiter.has_capacity():
                logger.warning("%s rate limit exceeded for %s", limit.name, ip)
                return api_error_response(
                    RateLimitError(
                        limit.message, code=limit.code, retry_after=limit.retry_after
                    )
                )
        for _, limiter in applicable:
            await limiter.acquire()

        return await call_next(request)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, client, status and duration of every request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        status: Optional[int] = None
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "%s %s from %s -> %s (%.1f ms)",
                request.method,
                request.url.path,
                client_ip(request),
                status if status is not None else "error",
                duration_ms,
            )

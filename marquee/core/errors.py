"""Error types shared by the services and the HTTP layer.

Every error a route can surface derives from :class:`APIError`, which carries
a stable machine-readable ``code`` and the HTTP status it maps to.
"""

from datetime import datetime, timezone
from typing import Any


class APIError(Exception):
    """Base class for errors rendered as a structured JSON response."""

    code = "SERVER_ERROR"
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        details: Any = None,
        original_exception: BaseException | None = None,
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.details = details
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            },
            "timestamp": self.timestamp,
        }


class TMDBError(APIError):
    """Domain exception for TMDB failures."""

    code = "TMDB_API_ERROR"
    status_code = 502
    default_message = "TMDB API Error"

    def __init__(
        self,
        message: str | None = None,
        original_exception: BaseException | None = None,
        status: int | None = None,
        tmdb_code: int | None = None,
    ):
        super().__init__(message, original_exception=original_exception)
        self.status = status
        self.tmdb_code = tmdb_code


class NetworkError(APIError):
    code = "NETWORK_ERROR"
    status_code = 502
    default_message = "Failed to connect to TMDB API"


class InvalidRequestError(APIError):
    code = "INVALID_REQUEST"
    status_code = 400
    default_message = "Invalid request parameters"


class ValidationError(APIError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Validation failed"


class NotFoundError(APIError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Requested resource not found"


class RateLimitError(APIError):
    """A client exhausted one of its request budgets.

    Each budget reports its own ``code`` and a human readable ``retry_after``.
    """

    code = "RATE_LIMIT_EXCEEDED"
    status_code = 429
    default_message = "Too many requests. Please try again later."

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        retry_after: str | None = None,
    ):
        super().__init__(message)
        if code:
            self.code = code
        self.retry_after = retry_after

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.retry_after:
            body["error"]["retry_after"] = self.retry_after
        return body


class ServiceUnavailableError(APIError):
    code = "SERVICE_UNAVAILABLE"
    status_code = 503
    default_message = "Service temporarily unavailable"


class UnsupportedCategory(APIError):
    """Raised when a category type/key pair is not in the mapping table."""

    code = "UNSUPPORTED_CATEGORY"
    status_code = 400

    def __init__(self, category_type: str, category_key: str):
        super().__init__(
            f"Unsupported {category_type} category: {category_key}",
            details={"category_type": category_type, "category_key": category_key},
        )
        self.category_type = category_type
        self.category_key = category_key


class CategoryFetchError(APIError):
    """Wraps a failure of a required provider call made for a category."""

    code = "CATEGORY_SERVICE_ERROR"
    status_code = 502
    default_message = "Failed to fetch category content"

    def __init__(self, category: str, cause: BaseException | None = None):
        super().__init__(
            f"Failed to fetch {category} content", original_exception=cause
        )
        self.category = category
        self.cause = cause


class ContentServiceError(APIError):
    code = "CONTENT_SERVICE_ERROR"
    status_code = 502
    default_message = "Failed to fetch content details"


class SearchServiceError(APIError):
    code = "SEARCH_ERROR"
    status_code = 502
    default_message = "Search operation failed"

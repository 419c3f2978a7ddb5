# backend/directory_search/core/exceptions.py
"""
Domain-specific exceptions for the directory search service.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Every exception renders to the `{error, message}` body clients expect.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import status
from fastapi.responses import JSONResponse

from .constants import RATE_LIMIT_MESSAGE, SEARCH_FAILED_MESSAGE


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def error_body(self) -> Dict[str, Any]:
        return {"error": self.message, "message": self.message}

    def to_response(self) -> JSONResponse:
        """Default conversion to a JSON response (override in subclasses)."""
        return JSONResponse(status_code=self.status_code, content=self.error_body())


class ValidationException(DomainException):
    """Raised when request validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        error: str,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(error, details=details)
        self.detail_message = message or error

    def error_body(self) -> Dict[str, Any]:
        return {"error": self.message, "message": self.detail_message}


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class RateLimitExceededException(DomainException):
    """Raised when a client exceeds its request budget."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, retry_after_s: float, limit: int, reset_epoch_s: float) -> None:
        self.retry_after_s = retry_after_s
        self.limit = limit
        self.reset_epoch_s = reset_epoch_s
        super().__init__(
            RATE_LIMIT_MESSAGE,
            code="RATE_LIMIT_EXCEEDED",
            details={"retry_after": int(retry_after_s)},
        )

    def error_body(self) -> Dict[str, Any]:
        wait = max(int(self.retry_after_s), 1)
        return {
            "error": self.message,
            "message": f"Rate limit exceeded. Try again in {wait} seconds.",
        }

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status_code,
            content=self.error_body(),
            headers={
                "X-RateLimit-Limit": str(self.limit),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(int(self.reset_epoch_s)),
                "Retry-After": str(max(int(self.retry_after_s), 1)),
            },
        )


class GeocodingException(DomainException):
    """Raised when an address or coordinate cannot be geocoded."""


class GeocodingProviderError(GeocodingException):
    """Raised by providers on transport failures and non-200 responses."""

    def __init__(self, message: str, status_code: Optional[int] = None, retryable: bool = True) -> None:
        super().__init__(message, code="GEOCODING_PROVIDER_ERROR", details={"status_code": status_code})
        self.provider_status = status_code
        self.retryable = retryable


class QueryProcessingException(DomainException):
    """Raised when a pipeline stage fails before results are produced."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(message, code="QUERY_PROCESSING_FAILED", details={"stage": stage})
        self.stage = stage


class RepositoryException(DomainException):
    """Raised when a data access operation fails."""


class StoreExecutionException(DomainException):
    """Raised when the store cannot answer even the fallback query."""


class SearchFailedException(DomainException):
    """Raised when the search pipeline and its fallback both fail."""

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        super().__init__(message, code="SEARCH_FAILED")
        self.error_details = details or message

    def error_body(self) -> Dict[str, Any]:
        return {
            "error": SEARCH_FAILED_MESSAGE,
            "message": self.message,
            "details": self.error_details,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

# backend/directory_search/utils/retry.py
"""
Retry-with-backoff helpers for flaky async operations.

`retry` never raises on its own: the outcome, including the final error,
is returned as a `RetryResult` so callers decide how to degrade.
Only idempotent reads (geocoding lookups) should be wrapped.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
import re
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from ..core.config import settings

T = TypeVar("T")
logger = logging.getLogger(__name__)

_RETRYABLE_API_ERROR = re.compile(r"network|fetch|timeout|timed out|429|500|502|503|504")
_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def _always_retry(_error: BaseException) -> bool:
    return True


@dataclass
class RetryOptions:
    max_attempts: int = 3
    delay_ms: float = 1000
    backoff_multiplier: float = 2
    should_retry: Callable[[BaseException], bool] = field(default=_always_retry)

    @classmethod
    def from_settings(cls) -> "RetryOptions":
        return cls(
            max_attempts=settings.retry_max_attempts,
            delay_ms=settings.retry_delay_ms,
            backoff_multiplier=settings.retry_backoff_multiplier,
        )

    def wait_seconds(self, attempt: int) -> float:
        """Backoff before the attempt following `attempt` (1-based)."""
        return (self.delay_ms * self.backoff_multiplier ** (attempt - 1)) / 1000.0


@dataclass
class RetryResult(Generic[T]):
    success: bool
    attempts: int
    data: Optional[T] = None
    error: Optional[BaseException] = None


def is_retryable_api_error(error: BaseException) -> bool:
    """Network failures, timeouts, throttling and 5xx are retryable; anything else is fatal."""
    retryable = getattr(error, "retryable", None)
    if retryable is False:
        return False
    status_code = getattr(error, "provider_status", None) or getattr(error, "status_code", None)
    if isinstance(status_code, int) and status_code in _RETRYABLE_STATUS_CODES:
        return True
    if isinstance(error, (asyncio.TimeoutError, TimeoutError, ConnectionError)):
        return True
    return bool(_RETRYABLE_API_ERROR.search(str(error).lower()))


async def retry(
    operation: Callable[[], Awaitable[T]],
    options: Optional[RetryOptions] = None,
) -> RetryResult[T]:
    opts = options or RetryOptions()
    max_attempts = max(1, opts.max_attempts)
    last_error: Optional[BaseException] = None

    for attempt in range(1, max_attempts + 1):
        try:
            data = await operation()
            return RetryResult(success=True, attempts=attempt, data=data)
        except Exception as exc:
            last_error = exc
            if not opts.should_retry(exc):
                logger.debug("retry aborted attempt=%d exc=%r (not retryable)", attempt, exc)
                return RetryResult(success=False, attempts=attempt, error=exc)
            if attempt < max_attempts:
                delay = opts.wait_seconds(attempt)
                logger.debug("retry attempt=%d delay=%.2fs exc=%r", attempt, delay, exc)
                await asyncio.sleep(delay)

    return RetryResult(success=False, attempts=max_attempts, error=last_error)


async def retry_api_call(
    operation: Callable[[], Awaitable[T]],
    options: Optional[RetryOptions] = None,
) -> RetryResult[T]:
    """`retry` with the API error classifier as the retry predicate."""
    base = options or RetryOptions()
    api_options = RetryOptions(
        max_attempts=base.max_attempts,
        delay_ms=base.delay_ms,
        backoff_multiplier=base.backoff_multiplier,
        should_retry=is_retryable_api_error,
    )
    return await retry(operation, api_options)


async def retry_with_timeout(
    operation: Callable[[], Awaitable[T]],
    timeout_ms: float = 10000,
    options: Optional[RetryOptions] = None,
) -> RetryResult[T]:
    """`retry_api_call` with every attempt bounded by `timeout_ms`; a timed-out attempt is retryable."""

    async def bounded() -> T:
        try:
            return await asyncio.wait_for(operation(), timeout=timeout_ms / 1000.0)
        except asyncio.TimeoutError as exc:
            raise TimeoutError("Operation timed out") from exc

    return await retry_api_call(bounded, options)

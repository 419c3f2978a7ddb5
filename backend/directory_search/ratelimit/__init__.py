"""Fixed-window rate limiting with a pluggable counter store."""

from .dependency import rate_limit
from .limiter import RateLimiter, RateLimitResult
from .store import InMemoryRateLimitStore, RateLimitStore
from .window import Decision, fixed_window_decide

__all__ = [
    "Decision",
    "InMemoryRateLimitStore",
    "RateLimitResult",
    "RateLimitStore",
    "RateLimiter",
    "fixed_window_decide",
    "rate_limit",
]

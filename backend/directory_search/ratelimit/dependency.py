from __future__ import annotations

from fastapi import Request, Response

from ..core.config import settings
from ..core.exceptions import RateLimitExceededException
from .headers import set_rate_headers
from .limiter import RateLimiter
from .metrics import rl_decisions, rl_retry_after


def get_limiter(request: Request, bucket: str) -> RateLimiter:
    limiters = getattr(request.app.state, "rate_limiters", None)
    if limiters is None:
        limiters = {}
        request.app.state.rate_limiters = limiters
    limiter = limiters.get(bucket)
    if limiter is None:
        limiter = RateLimiter.for_bucket(bucket)
        limiters[bucket] = limiter
    return limiter


def rate_limit(bucket: str):
    # FastAPI dependency to attach on routes
    async def dep(request: Request, response: Response):
        if not settings.rate_limit_enabled:
            return

        limiter = get_limiter(request, bucket)
        result = await limiter.rate_limit(request)
        decision = result.decision

        set_rate_headers(
            response,
            decision.remaining,
            decision.limit,
            decision.reset_epoch_s,
            decision.retry_after_s if not decision.allowed else None,
        )

        if decision.allowed:
            rl_decisions.labels(bucket=bucket, action="allow").inc()
            return

        rl_decisions.labels(bucket=bucket, action="block").inc()
        rl_retry_after.labels(bucket=bucket).observe(max(decision.retry_after_s, 0.0))
        raise RateLimitExceededException(
            retry_after_s=decision.retry_after_s,
            limit=decision.limit,
            reset_epoch_s=decision.reset_epoch_s,
        )

    return dep

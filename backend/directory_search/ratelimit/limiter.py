from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Callable, Optional

from fastapi import Request

from ..core.config import settings
from .config import BucketPolicy, get_policy
from .identity import resolve_identity
from .store import InMemoryRateLimitStore, RateLimitStore
from .window import Decision

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    success: bool
    identity: str
    decision: Decision


class RateLimiter:
    """Per-identity fixed-window limiter for one bucket."""

    def __init__(
        self,
        bucket: str,
        requests: int,
        window_s: float,
        store: Optional[RateLimitStore] = None,
        namespace: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.bucket = bucket
        self.requests = requests
        self.window_s = window_s
        self.store = store or InMemoryRateLimitStore()
        self.namespace = namespace or settings.rate_limit_namespace
        self._clock = clock

    @classmethod
    def for_bucket(cls, bucket: str, store: Optional[RateLimitStore] = None) -> "RateLimiter":
        policy: Optional[BucketPolicy] = get_policy(bucket)
        if policy is None:
            raise KeyError(f"Unknown rate-limit bucket: {bucket}")
        return cls(bucket, policy.requests, policy.window_s, store=store)

    def _key(self, identity: str) -> str:
        return f"{self.namespace}:{self.bucket}:{identity}"

    def check(self, identity: str) -> Decision:
        return self.store.hit(self._key(identity), self.requests, self.window_s, self._clock())

    async def rate_limit(self, request: Request) -> RateLimitResult:
        identity = resolve_identity(request)
        decision = self.check(identity)
        if not decision.allowed:
            logger.info(
                "Rate limit exceeded bucket=%s identity=%s retry_after=%.1fs",
                self.bucket,
                identity,
                decision.retry_after_s,
            )
        return RateLimitResult(success=decision.allowed, identity=identity, decision=decision)

    def reset(self) -> None:
        self.store.reset()

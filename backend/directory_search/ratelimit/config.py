from dataclasses import dataclass
from typing import Dict, Optional

from ..core.config import settings


@dataclass(frozen=True)
class BucketPolicy:
    requests: int
    window_s: int


def build_buckets() -> Dict[str, BucketPolicy]:
    return {
        "search": BucketPolicy(
            requests=settings.rate_limit_search_requests,
            window_s=settings.rate_limit_search_window_seconds,
        ),
    }


BUCKETS = build_buckets()


def get_policy(bucket: str) -> Optional[BucketPolicy]:
    return BUCKETS.get(bucket)

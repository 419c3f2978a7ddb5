from prometheus_client import Counter, Histogram

from ..monitoring.prometheus_metrics import REGISTRY

rl_decisions = Counter(
    "directory_rl_decisions_total",
    "rate-limit decisions",
    ["bucket", "action"],
    registry=REGISTRY,
)
rl_retry_after = Histogram(
    "directory_rl_retry_after_seconds",
    "retry-after values",
    ["bucket"],
    registry=REGISTRY,
    buckets=(0.0, 1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0),
)

__all__ = [
    "rl_decisions",
    "rl_retry_after",
]

"""
Prometheus metrics for the directory search service.

All collectors register on a dedicated registry so test runs and
multiple app instances do not collide with the default global registry.
"""

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

search_requests_total = Counter(
    "directory_search_requests_total",
    "Total number of search requests answered",
    ["search_type"],
    registry=REGISTRY,
)

search_stage_duration_seconds = Histogram(
    "directory_search_stage_duration_seconds",
    "Duration of individual search pipeline stages",
    ["stage"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

search_fallbacks_total = Counter(
    "directory_search_fallbacks_total",
    "Searches answered by the unfiltered fallback query",
    ["stage"],
    registry=REGISTRY,
)

geocoding_requests_total = Counter(
    "directory_geocoding_requests_total",
    "Geocoding lookups by operation and outcome",
    ["operation", "outcome"],
    registry=REGISTRY,
)


def get_metrics() -> bytes:
    """Render every collector on the app registry in exposition format."""
    return generate_latest(REGISTRY)


__all__ = [
    "CONTENT_TYPE_LATEST",
    "REGISTRY",
    "geocoding_requests_total",
    "get_metrics",
    "search_fallbacks_total",
    "search_requests_total",
    "search_stage_duration_seconds",
]

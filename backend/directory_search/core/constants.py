"""Application-wide constants for the directory search service."""

from __future__ import annotations

SERVICE_NAME = "directory-search"

# Radii in miles
DEFAULT_SEARCH_RADIUS = 50
DEFAULT_NEAR_ME_RADIUS = 10
DEFAULT_LOCATION_RADIUS = 5
FALLBACK_SEARCH_RADIUS = 10

# Anchor confidence by source
QUERY_LOCATION_CONFIDENCE = 0.9
GEOLOCATION_CONFIDENCE = 0.95
ZIP_LOCATION_CONFIDENCE = 0.8
DEFAULT_LOCATION_CONFIDENCE = 0.5

EARTH_RADIUS_MILES = 3958.8
MILES_PER_DEGREE_LAT = 69.0

# Query limits
MAX_SEARCH_RESULTS = 1000
FALLBACK_RESULT_LIMIT = 10
MAX_SUGGESTIONS = 10

# Client-facing error messages
RATE_LIMIT_MESSAGE = "Too many requests. Please try again later."
QUERY_REQUIRED_MESSAGE = "Search query is required and must be a string"
SUGGESTION_QUERY_REQUIRED_MESSAGE = "Query parameter is required"
SEARCH_FAILED_MESSAGE = "Search failed"

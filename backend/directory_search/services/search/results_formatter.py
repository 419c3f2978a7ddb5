# backend/directory_search/services/search/results_formatter.py
"""
Ranking and pagination of search rows.

Order is a strict total order:
1. exact matches first
2. rows with a distance before rows without one
3. ascending distance
4. case-insensitive name, then name, then id
"""
from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import List, Optional, Tuple

from ...core.constants import EARTH_RADIUS_MILES
from ...schemas.search import RankedResult, ServiceRecord
from .geo_resolver import GeoAnchor, GeoSource
from .query_processor import ParsedQuery
from .search_executor import SearchExecution
from .vocabulary import normalize_text


@dataclass
class FormattedResults:
    results: List[RankedResult] = field(default_factory=list)
    total_count: int = 0

    @property
    def result_count(self) -> int:
        return len(self.results)


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in miles."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def distance_from_anchor(record: ServiceRecord, anchor: GeoAnchor) -> Optional[float]:
    lat, lng = record.latitude, record.longitude
    if not anchor.has_point or lat is None or lng is None or (lat == 0 and lng == 0):
        return None
    return round(haversine_miles(anchor.lat, anchor.lng, lat, lng), 1)


def is_exact_match(record: ServiceRecord, normalized_query: str, anchor: GeoAnchor) -> bool:
    if normalized_query and normalize_text(record.name) == normalized_query:
        return True
    return bool(anchor.source is GeoSource.ZIP and anchor.zip and record.zip_code == anchor.zip)


def rank_key(result: RankedResult) -> Tuple[bool, bool, float, str, str, str]:
    return (
        not result.is_exact_match,
        result.distance is None,
        result.distance if result.distance is not None else 0.0,
        result.name.casefold(),
        result.name,
        result.id,
    )


def format_search_results(
    execution: SearchExecution,
    anchor: GeoAnchor,
    parsed: Optional[ParsedQuery] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> FormattedResults:
    normalized_query = parsed.normalized_query if parsed is not None else ""
    ranked = [
        RankedResult(
            **record.model_dump(),
            distance=distance_from_anchor(record, anchor),
            is_exact_match=is_exact_match(record, normalized_query, anchor),
        )
        for record in execution.results
    ]
    ranked.sort(key=rank_key)

    total_count = max(execution.total_count, len(ranked))
    start = max(offset, 0)
    page = ranked[start:] if limit is None else ranked[start : start + max(limit, 0)]
    return FormattedResults(results=page, total_count=total_count)

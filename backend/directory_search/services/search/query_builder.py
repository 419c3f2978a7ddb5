# backend/directory_search/services/search/query_builder.py
"""
Translate a ParsedQuery into a store-agnostic SearchSpec.

A SearchSpec is a closed set of tagged filters over known columns; the
repository turns it into SQL. Location filtering depends on the anchor:
state equality for query keywords, ZIP equality for ZIP anchors, a
bounding box for device geolocation, nothing for the default anchor.
"""
from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Optional, Tuple, Union

from ...core.constants import FALLBACK_RESULT_LIMIT, MILES_PER_DEGREE_LAT
from .geo_resolver import GeoAnchor, GeoSource
from .query_processor import PRODUCT_SERVICE_TYPE, ParsedQuery

FILTERABLE_COLUMNS = frozenset({"service_type", "state", "zip_code", "is_verified"})
ORDERABLE_COLUMNS = frozenset({"name", "id", "city", "state"})


@dataclass(frozen=True)
class EqualsFilter:
    column: str
    value: Union[str, bool]


@dataclass(frozen=True)
class InFilter:
    column: str
    values: Tuple[str, ...]


@dataclass(frozen=True)
class BoundingBoxFilter:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


SpecFilter = Union[EqualsFilter, InFilter, BoundingBoxFilter]


@dataclass(frozen=True)
class SearchSpec:
    filters: Tuple[SpecFilter, ...] = ()
    order_by: Tuple[Tuple[str, bool], ...] = (("name", True), ("id", True))
    ordering_deferred: bool = False
    # Anchor point; the store returns nearer rows first when ranking is deferred
    near: Optional[Tuple[float, float]] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    mode: str = "filtered"  # "filtered" | "fallback"

    @property
    def is_fallback(self) -> bool:
        return self.mode == "fallback"

    def describe(self) -> str:
        parts = []
        for f in self.filters:
            if isinstance(f, EqualsFilter):
                parts.append(f"{f.column}={f.value!r}")
            elif isinstance(f, InFilter):
                parts.append(f"{f.column} in {list(f.values)}")
            else:
                parts.append(f"bbox[{f.min_lat:.3f},{f.max_lat:.3f},{f.min_lng:.3f},{f.max_lng:.3f}]")
        near = f" near={self.near[0]:.4f},{self.near[1]:.4f}" if self.near else ""
        return f"mode={self.mode} filters=[{', '.join(parts)}]{near} limit={self.limit} offset={self.offset}"


def bounding_box(lat: float, lng: float, radius_miles: float) -> BoundingBoxFilter:
    """Box enclosing the radius; exact distance is applied later by the formatter."""
    lat_delta = radius_miles / MILES_PER_DEGREE_LAT
    cos_lat = math.cos(math.radians(lat))
    lng_delta = radius_miles / (MILES_PER_DEGREE_LAT * cos_lat) if abs(cos_lat) > 1e-9 else 180.0
    return BoundingBoxFilter(
        min_lat=lat - lat_delta,
        max_lat=lat + lat_delta,
        min_lng=lng - lng_delta,
        max_lng=lng + lng_delta,
    )


def _location_filter(anchor: GeoAnchor) -> Optional[SpecFilter]:
    if anchor.source is GeoSource.QUERY and anchor.state:
        return EqualsFilter("state", anchor.state)
    if anchor.source is GeoSource.ZIP and anchor.zip:
        return EqualsFilter("zip_code", anchor.zip)
    if anchor.source is GeoSource.GEOLOCATION or anchor.is_near_me:
        return bounding_box(anchor.lat, anchor.lng, anchor.radius_miles)
    return None


def _service_types(parsed: ParsedQuery) -> Tuple[str, ...]:
    services = parsed.entities.services
    if not services and parsed.search_type == "product":
        return (PRODUCT_SERVICE_TYPE,)
    return services


def build_search_query(parsed: ParsedQuery) -> SearchSpec:
    """SearchSpec for every matching row; pagination happens after ranking."""
    filters = []

    services = _service_types(parsed)
    if len(services) == 1:
        filters.append(EqualsFilter("service_type", services[0]))
    elif services:
        filters.append(InFilter("service_type", tuple(services)))

    location = _location_filter(parsed.location)
    if location is not None:
        filters.append(location)

    if parsed.filters.verified:
        filters.append(EqualsFilter("is_verified", True))

    anchor = parsed.location
    if anchor.has_point:
        # Store order is approximate proximity, then id; exact ranking is the formatter's
        return SearchSpec(
            filters=tuple(filters),
            order_by=(("id", True),),
            ordering_deferred=True,
            near=(anchor.lat, anchor.lng),
        )
    return SearchSpec(filters=tuple(filters))


def build_paginated_search_query(parsed: ParsedQuery, limit: int, offset: int = 0) -> SearchSpec:
    base = build_search_query(parsed)
    return SearchSpec(
        filters=base.filters,
        order_by=base.order_by,
        ordering_deferred=base.ordering_deferred,
        near=base.near,
        limit=max(int(limit), 0),
        offset=max(int(offset), 0),
    )


def build_fallback_query(limit: int = FALLBACK_RESULT_LIMIT) -> SearchSpec:
    """Unfiltered, bounded, name-ordered query used when structured search fails."""
    return SearchSpec(
        filters=(),
        order_by=(("name", True), ("id", True)),
        limit=max(int(limit), 1),
        mode="fallback",
    )

import pytest

from directory_search.services.search.geo_resolver import GeoAnchor, GeoSource
from directory_search.services.search.query_builder import (
    BoundingBoxFilter,
    EqualsFilter,
    InFilter,
    bounding_box,
    build_fallback_query,
    build_paginated_search_query,
    build_search_query,
)
from directory_search.services.search.query_processor import ParsedQuery, QueryEntities, SearchFilters


def _anchor(source: GeoSource, **overrides) -> GeoAnchor:
    values = dict(
        lat=39.9568, lng=-86.0075, city="Fishers", state="IN", zip="46037", radius_miles=10, source=source
    )
    values.update(overrides)
    return GeoAnchor(**values)


def _parsed(anchor: GeoAnchor, services=(), products=(), search_type="service", filters=None) -> ParsedQuery:
    return ParsedQuery(
        original_query="q",
        normalized_query="q",
        search_type=search_type,
        entities=QueryEntities(services=services, products=products),
        location=anchor,
        filters=filters or SearchFilters(),
    )


def test_single_service_and_state():
    spec = build_search_query(_parsed(_anchor(GeoSource.QUERY), services=("groomer",)))
    assert spec.filters == (EqualsFilter("service_type", "groomer"), EqualsFilter("state", "IN"))
    assert spec.order_by == (("name", True), ("id", True))
    assert spec.ordering_deferred is False
    assert spec.limit is None


def test_multiple_services_use_in_filter():
    spec = build_search_query(_parsed(_anchor(GeoSource.DEFAULT), services=("groomer", "veterinarian")))
    assert spec.filters == (InFilter("service_type", ("groomer", "veterinarian")),)


def test_product_search_targets_product_listings():
    spec = build_search_query(_parsed(_anchor(GeoSource.DEFAULT), products=("food",), search_type="product"))
    assert spec.filters == (EqualsFilter("service_type", "pet_products"),)


def test_zip_anchor_filters_zip_and_defers_ordering():
    spec = build_search_query(_parsed(_anchor(GeoSource.ZIP)))
    assert spec.filters == (EqualsFilter("zip_code", "46037"),)
    assert spec.ordering_deferred is True
    assert spec.order_by == (("id", True),)
    assert spec.near == (39.9568, -86.0075)


def test_geolocation_anchor_uses_bounding_box():
    spec = build_search_query(_parsed(_anchor(GeoSource.GEOLOCATION, is_near_me=True)))
    (box,) = spec.filters
    assert isinstance(box, BoundingBoxFilter)
    assert box.contains(39.9568, -86.0075)
    assert not box.contains(41.8781, -87.6298)


def test_default_anchor_has_no_location_filter():
    spec = build_search_query(_parsed(_anchor(GeoSource.DEFAULT)))
    assert spec.filters == ()


def test_verified_filter():
    spec = build_search_query(_parsed(_anchor(GeoSource.DEFAULT), filters=SearchFilters(verified=True)))
    assert spec.filters == (EqualsFilter("is_verified", True),)


def test_bounding_box_extent():
    box = bounding_box(40.0, -86.0, 69.0)
    assert box.min_lat == pytest.approx(39.0)
    assert box.max_lat == pytest.approx(41.0)
    assert box.max_lng - box.min_lng > 2.0


def test_paginated_query():
    spec = build_paginated_search_query(_parsed(_anchor(GeoSource.QUERY)), limit=20, offset=40)
    assert (spec.limit, spec.offset) == (20, 40)
    assert spec.filters == (EqualsFilter("state", "IN"),)
    assert spec.near is None


def test_paginated_point_anchor_keeps_store_order():
    spec = build_paginated_search_query(_parsed(_anchor(GeoSource.ZIP)), limit=5, offset=5)
    assert spec.near == (39.9568, -86.0075)
    assert spec.order_by == (("id", True),)
    assert "near=39.9568,-86.0075" in spec.describe()


def test_fallback_query():
    spec = build_fallback_query(10)
    assert spec.is_fallback
    assert spec.filters == ()
    assert spec.limit == 10
    assert "mode=fallback" in spec.describe()

from unittest.mock import AsyncMock

import pytest

from directory_search.services.geocoding.service import GeocodingOutcome
from directory_search.services.search.config import SearchConfig
from directory_search.services.search.geo_resolver import GeoResolver, GeoSource, UserLocation
from directory_search.services.search.query_processor import (
    QueryProcessor,
    determine_search_type,
    extract_filters,
    extract_modifiers,
)


@pytest.fixture
def geocoding():
    service = AsyncMock()
    service.reverse_geocode.return_value = GeocodingOutcome(
        success=True, latitude=39.9, longitude=-86.0, city="Fishers", state="IN", zip_code="46037"
    )
    service.geocode_postal_code.return_value = GeocodingOutcome(
        success=True, latitude=39.96, longitude=-86.01, city="Fishers", state="IN", zip_code="46037"
    )
    return service


@pytest.fixture
def processor(geocoding) -> QueryProcessor:
    config = SearchConfig()
    return QueryProcessor(GeoResolver(geocoding, config=config), config=config)


class TestExtractFilters:
    def test_boolean_filters(self):
        filters = extract_filters("verified mobile groomer open now for puppies", near_me=False)
        assert filters.verified and filters.mobile and filters.open_now and filters.puppy
        assert not filters.senior

    def test_graded_filters(self):
        filters = extract_filters("24/7 premium vet for large dogs 4+ stars", near_me=True)
        assert filters.availability == "24_7"
        assert filters.quality == "premium"
        assert filters.size == "large"
        assert filters.min_rating == 4
        assert filters.near_me is True

    def test_to_dict_only_set_values(self):
        filters = extract_filters("cheap emergency vet", near_me=False)
        assert filters.to_dict() == {"availability": "emergency", "quality": "budget"}


def test_extract_modifiers():
    assert extract_modifiers("Best friendly and experienced trainer") == ("best", "friendly", "experienced")


def test_determine_search_type():
    assert determine_search_type((), ("food",)) == "product"
    assert determine_search_type(("pet_products",), ("toys",)) == "product"
    assert determine_search_type(("groomer",), ("toys",)) == "service"
    assert determine_search_type((), ()) == "service"


class TestProcessSearchQuery:
    @pytest.mark.asyncio
    async def test_state_keyword_query(self, processor):
        parsed = await processor.process_search_query("groomer in indiana")
        assert parsed.entities.services == ("groomer",)
        assert parsed.entities.locations == ("IN",)
        assert parsed.location.source is GeoSource.QUERY
        assert parsed.location.state == "IN"
        assert parsed.location.radius_miles == 50
        assert parsed.confidence == 0.9
        assert parsed.intent == "Looking for groomer services in IN"
        assert parsed.search_type == "service"

    @pytest.mark.asyncio
    async def test_geolocation_query(self, processor, geocoding):
        parsed = await processor.process_search_query("dog park", UserLocation(lat=39.9, lng=-86.0))
        assert parsed.location.source is GeoSource.GEOLOCATION
        assert parsed.location.is_near_me is True
        assert parsed.location.radius_miles == 10
        assert parsed.filters.near_me is True
        assert parsed.intent == "Looking for dog_park services near you"
        geocoding.reverse_geocode.assert_awaited_once_with(39.9, -86.0)

    @pytest.mark.asyncio
    async def test_zip_in_text(self, processor, geocoding):
        parsed = await processor.process_search_query("vet 46037")
        assert "46037" in parsed.entities.locations
        assert parsed.location.source is GeoSource.ZIP
        assert parsed.location.zip == "46037"
        assert parsed.confidence == 0.8
        geocoding.geocode_postal_code.assert_awaited_once_with("46037")

    @pytest.mark.asyncio
    async def test_product_query(self, processor):
        parsed = await processor.process_search_query("organic dog treats")
        assert parsed.search_type == "product"
        assert parsed.entities.products == ("treats",)
        assert parsed.filters.organic is True

    @pytest.mark.asyncio
    async def test_garbage_input_yields_default_parse(self, processor):
        parsed = await processor.process_search_query("!!! ???")
        assert parsed.normalized_query == ""
        assert parsed.entities.services == ()
        assert parsed.location.source is GeoSource.DEFAULT
        assert parsed.intent == "General search"
        assert parsed.confidence == 0.5

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "text, location",
        [
            ("Verified GROOMERS in Ohio, 5 star", None),
            ("dog park near me", UserLocation(lat=39.9, lng=-86.0)),
            ("vet 46037", UserLocation(lat=39.9, lng=-86.0)),
            ("   ", None),
        ],
    )
    async def test_same_input_parses_identically(self, processor, text, location):
        first = await processor.process_search_query(text, location)
        second = await processor.process_search_query(text, location)
        assert first == second
        assert first.to_dict() == second.to_dict()

    @pytest.mark.asyncio
    async def test_non_string_input(self, processor):
        parsed = await processor.process_search_query(None)
        assert parsed.original_query == ""
        assert parsed.location.source is GeoSource.DEFAULT

    @pytest.mark.asyncio
    async def test_to_dict_wire_keys(self, processor):
        parsed = await processor.process_search_query("verified groomer near me")
        wire = parsed.to_dict()
        assert wire["searchType"] == "service"
        assert wire["filters"] == {"nearMe": True, "verified": True}
        assert wire["entities"]["locations"] == ["near_me"]

from typing import List, Optional
from unittest.mock import AsyncMock

import pytest

from directory_search.core.exceptions import GeocodingProviderError
from directory_search.services.geocoding.base import GeocodedAddress, GeocodingProvider
from directory_search.services.geocoding.factory import create_geocoding_provider
from directory_search.services.geocoding.mock_provider import MockGeocodingProvider
from directory_search.services.geocoding.nominatim_provider import NominatimProvider
from directory_search.services.geocoding.service import GeocodingService, build_address_variants
from directory_search.services.search.vocabulary import STATE_DEFAULT_COORDINATES
from directory_search.utils.retry import RetryOptions


def _address(lat: float = 39.95, lng: float = -86.0) -> GeocodedAddress:
    return GeocodedAddress(
        latitude=lat,
        longitude=lng,
        formatted_address="somewhere",
        city="Fishers",
        state="IN",
        postal_code="46037",
        provider_id="test",
    )


class ScriptedProvider(GeocodingProvider):
    """Answers each geocode call from a script; records the queries it saw."""

    def __init__(self, answers: List[object]) -> None:
        self.answers = list(answers)
        self.queries: List[str] = []

    async def geocode(self, address: str) -> Optional[GeocodedAddress]:
        self.queries.append(address)
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer  # type: ignore[return-value]

    async def reverse_geocode(self, lat: float, lng: float) -> Optional[GeocodedAddress]:
        return None


def _service(provider: GeocodingProvider) -> GeocodingService:
    return GeocodingService(
        provider=provider, retry_options=RetryOptions(max_attempts=1, delay_ms=0), variant_delay_s=0
    )


def test_build_address_variants_drops_blanks_and_duplicates():
    assert build_address_variants("1 Main St", "Fishers", "IN", "46037") == [
        "1 Main St, Fishers, IN, 46037",
        "Fishers, IN, 46037",
        "1 Main St, Fishers, IN",
        "Fishers, IN",
    ]
    assert build_address_variants(None, "Fishers", "IN", None) == ["Fishers, IN"]
    assert build_address_variants(" ", None, None, None) == []


def test_factory_selects_provider():
    assert isinstance(create_geocoding_provider("mock"), MockGeocodingProvider)
    assert isinstance(create_geocoding_provider("nominatim"), NominatimProvider)
    assert isinstance(create_geocoding_provider("something-else"), NominatimProvider)


class TestAttemptGeocoding:
    @pytest.mark.asyncio
    async def test_first_variant_success_needs_no_review(self):
        provider = ScriptedProvider([_address()])
        outcome = await _service(provider).attempt_geocoding("1 Main St", "Fishers", "IN", "46037")
        assert outcome.success is True
        assert outcome.needs_review is False
        assert provider.queries == ["1 Main St, Fishers, IN, 46037"]

    @pytest.mark.asyncio
    async def test_later_variant_sets_needs_review(self):
        provider = ScriptedProvider([None, _address(40.0, -86.1)])
        outcome = await _service(provider).attempt_geocoding("1 Main St", "Fishers", "IN", "46037")
        assert outcome.success is True
        assert outcome.needs_review is True
        assert outcome.variant == "Fishers, IN, 46037"
        assert outcome.latitude == 40.0

    @pytest.mark.asyncio
    async def test_all_variants_fail(self):
        provider = ScriptedProvider([None, GeocodingProviderError("boom", status_code=500), None, None])
        outcome = await _service(provider).attempt_geocoding("1 Main St", "Fishers", "IN", "46037")
        assert outcome.success is False
        assert outcome.needs_review is True
        assert len(provider.queries) == 4


class TestGeocodeWithDefault:
    @pytest.mark.asyncio
    async def test_uses_state_default_on_failure(self):
        provider = ScriptedProvider([None, None, None, None])
        outcome = await _service(provider).geocode_with_default("1 Main St", "Columbus", "oh", "43215")
        assert (outcome.latitude, outcome.longitude) == STATE_DEFAULT_COORDINATES["OH"]
        assert outcome.needs_review is True
        assert outcome.used_state_default is True

    @pytest.mark.asyncio
    async def test_unknown_state_uses_indiana(self):
        provider = ScriptedProvider([None, None, None, None])
        outcome = await _service(provider).geocode_with_default("1 Main St", "Austin", "TX", "73301")
        assert (outcome.latitude, outcome.longitude) == STATE_DEFAULT_COORDINATES["IN"]


class TestLookups:
    @pytest.mark.asyncio
    async def test_postal_code_query_format(self):
        provider = ScriptedProvider([_address()])
        outcome = await _service(provider).geocode_postal_code(" 46037 ")
        assert provider.queries == ["46037, USA"]
        assert outcome.zip_code == "46037"

    @pytest.mark.asyncio
    async def test_retries_transient_errors(self):
        provider = ScriptedProvider([GeocodingProviderError("busy", status_code=429), _address()])
        service = GeocodingService(
            provider=provider, retry_options=RetryOptions(max_attempts=3, delay_ms=0), variant_delay_s=0
        )
        outcome = await service.geocode_text("Fishers, IN")
        assert outcome.success is True
        assert len(provider.queries) == 2

    @pytest.mark.asyncio
    async def test_reverse_no_match(self):
        provider = ScriptedProvider([])
        provider.reverse_geocode = AsyncMock(return_value=None)  # type: ignore[method-assign]
        outcome = await _service(provider).reverse_geocode(39.9, -86.0)
        assert outcome.success is False
        assert outcome.error == "No results found"

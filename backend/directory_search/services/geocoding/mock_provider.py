"""Mock geocoding provider for local development and tests (no network calls)."""

from typing import Optional

from .base import GeocodedAddress, GeocodingProvider


class MockGeocodingProvider(GeocodingProvider):
    async def geocode(self, address: str) -> Optional[GeocodedAddress]:
        # Return a deterministic coordinate for any input
        return GeocodedAddress(
            latitude=39.9568,
            longitude=-86.0075,
            formatted_address=address or "Fishers, IN 46037, USA",
            city="Fishers",
            state="IN",
            postal_code="46037",
            country="US",
            provider_id="mock:geocode",
            provider_data={"source": "mock"},
            confidence_score=1.0,
        )

    async def reverse_geocode(self, lat: float, lng: float) -> Optional[GeocodedAddress]:
        return GeocodedAddress(
            latitude=lat,
            longitude=lng,
            formatted_address="Fishers, IN 46037, USA",
            city="Fishers",
            state="IN",
            postal_code="46037",
            country="US",
            provider_id="mock:reverse",
            provider_data={"source": "mock"},
            confidence_score=0.99,
        )

"""Provider-agnostic geocoding interfaces."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, Field


class GeocodedAddress(BaseModel):
    latitude: float
    longitude: float
    formatted_address: str
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    provider_id: str
    provider_data: dict[str, Any] = Field(default_factory=dict)
    confidence_score: float = 1.0


class GeocodingProvider(ABC):
    """
    A geocoding backend.

    Implementations return None when the provider has no match and raise
    GeocodingProviderError on transport failures and non-200 responses.
    """

    @abstractmethod
    async def geocode(self, address: str) -> Optional[GeocodedAddress]:
        pass

    @abstractmethod
    async def reverse_geocode(self, lat: float, lng: float) -> Optional[GeocodedAddress]:
        pass

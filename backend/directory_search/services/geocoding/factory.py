"""Factory for geocoding providers."""

import logging
from typing import Optional

from ...core.config import settings
from .base import GeocodingProvider
from .mock_provider import MockGeocodingProvider
from .nominatim_provider import NominatimProvider

logger = logging.getLogger(__name__)


def create_geocoding_provider(provider_override: Optional[str] = None) -> GeocodingProvider:
    name = (provider_override or settings.geocoding_provider or "nominatim").lower()
    provider: GeocodingProvider
    if name == "nominatim":
        provider = NominatimProvider()
    elif name == "mock":
        provider = MockGeocodingProvider()
    else:
        logger.warning("Unknown geocoding provider %r; using nominatim", name)
        provider = NominatimProvider()
    return provider

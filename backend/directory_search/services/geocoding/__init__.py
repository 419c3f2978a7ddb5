from .base import GeocodedAddress, GeocodingProvider
from .factory import create_geocoding_provider
from .service import GeocodingOutcome, GeocodingService

__all__ = [
    "GeocodedAddress",
    "GeocodingOutcome",
    "GeocodingProvider",
    "GeocodingService",
    "create_geocoding_provider",
]

# backend/directory_search/services/geocoding/service.py
"""
Geocoding service used by location resolution and the review write path.

Wraps a GeocodingProvider with retries, address variants and state-default
coordinates. Nothing here raises for a failed lookup: callers receive a
GeocodingOutcome and decide how to degrade.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import Awaitable, Callable, List, Optional

from ...core.config import settings
from ...monitoring.prometheus_metrics import geocoding_requests_total
from ...utils.retry import RetryOptions, retry_with_timeout
from ..search.vocabulary import default_coordinates_for_state
from .base import GeocodedAddress, GeocodingProvider
from .factory import create_geocoding_provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeocodingOutcome:
    success: bool
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    needs_review: bool = False
    used_state_default: bool = False
    variant: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_address(cls, found: GeocodedAddress, variant: Optional[str] = None, needs_review: bool = False) -> "GeocodingOutcome":
        return cls(
            success=True,
            latitude=found.latitude,
            longitude=found.longitude,
            city=found.city,
            state=found.state,
            zip_code=found.postal_code,
            needs_review=needs_review,
            variant=variant,
        )


def build_address_variants(
    address: Optional[str], city: Optional[str], state: Optional[str], zip_code: Optional[str]
) -> List[str]:
    """Most to least specific query strings; blanks and duplicates dropped."""

    def join(*parts: Optional[str]) -> str:
        return ", ".join(p.strip() for p in parts if p and p.strip())

    candidates = [
        join(address, city, state, zip_code),
        join(city, state, zip_code),
        join(address, city, state),
        join(city, state),
    ]
    variants: List[str] = []
    for candidate in candidates:
        if candidate and candidate not in variants:
            variants.append(candidate)
    return variants


class GeocodingService:
    def __init__(
        self,
        provider: Optional[GeocodingProvider] = None,
        retry_options: Optional[RetryOptions] = None,
        variant_delay_s: Optional[float] = None,
        attempt_timeout_s: Optional[float] = None,
    ) -> None:
        self.provider = provider or create_geocoding_provider()
        self.retry_options = retry_options or RetryOptions.from_settings()
        self.variant_delay_s = (
            settings.geocoding_variant_delay_seconds if variant_delay_s is None else variant_delay_s
        )
        self.attempt_timeout_s = (
            settings.geocoding_timeout_seconds if attempt_timeout_s is None else attempt_timeout_s
        )

    async def _lookup(
        self, operation: str, call: Callable[[], Awaitable[Optional[GeocodedAddress]]]
    ) -> tuple[Optional[GeocodedAddress], Optional[str]]:
        result = await retry_with_timeout(
            call, timeout_ms=self.attempt_timeout_s * 1000, options=self.retry_options
        )
        if not result.success:
            geocoding_requests_total.labels(operation=operation, outcome="error").inc()
            logger.warning(
                "Geocoding %s failed after %d attempt(s): %s", operation, result.attempts, result.error
            )
            return None, str(result.error) if result.error else "Geocoding failed"
        if result.data is None:
            geocoding_requests_total.labels(operation=operation, outcome="no_match").inc()
            return None, "No results found"
        geocoding_requests_total.labels(operation=operation, outcome="success").inc()
        return result.data, None

    async def geocode_text(self, text: str) -> GeocodingOutcome:
        found, error = await self._lookup("geocode", lambda: self.provider.geocode(text))
        if found is None:
            return GeocodingOutcome(success=False, error=error)
        return GeocodingOutcome.from_address(found, variant=text)

    async def geocode_postal_code(self, zip_code: str) -> GeocodingOutcome:
        return await self.geocode_text(f"{zip_code.strip()}, USA")

    async def reverse_geocode(self, lat: float, lng: float) -> GeocodingOutcome:
        found, error = await self._lookup("reverse", lambda: self.provider.reverse_geocode(lat, lng))
        if found is None:
            return GeocodingOutcome(success=False, error=error)
        return GeocodingOutcome.from_address(found)

    async def attempt_geocoding(
        self,
        address: Optional[str],
        city: Optional[str],
        state: Optional[str],
        zip_code: Optional[str],
    ) -> GeocodingOutcome:
        """
        Try each address variant until one resolves.

        needs_review is set when only a less specific variant succeeded.
        """
        variants = build_address_variants(address, city, state, zip_code)
        last_error: Optional[str] = "No address provided"
        for index, variant in enumerate(variants):
            if index > 0 and self.variant_delay_s > 0:
                await asyncio.sleep(self.variant_delay_s)
            found, error = await self._lookup(
                "geocode", lambda v=variant: self.provider.geocode(v)  # type: ignore[misc]
            )
            if found is not None:
                if index > 0:
                    logger.info("Geocoded %r using fallback variant %d", variants[0], index)
                return GeocodingOutcome.from_address(found, variant=variant, needs_review=index > 0)
            last_error = error
        return GeocodingOutcome(success=False, needs_review=True, error=last_error)

    async def geocode_with_default(
        self,
        address: Optional[str],
        city: Optional[str],
        state: Optional[str],
        zip_code: Optional[str],
    ) -> GeocodingOutcome:
        """Like attempt_geocoding, but substitutes the state's default coordinates on failure."""
        outcome = await self.attempt_geocoding(address, city, state, zip_code)
        if outcome.success:
            return outcome
        lat, lng = default_coordinates_for_state(state)
        logger.warning(
            "Using default coordinates for state %s after geocoding failure: %s", state, outcome.error
        )
        return GeocodingOutcome(
            success=False,
            latitude=lat,
            longitude=lng,
            city=city,
            state=state,
            zip_code=zip_code,
            needs_review=True,
            used_state_default=True,
            error=outcome.error,
        )

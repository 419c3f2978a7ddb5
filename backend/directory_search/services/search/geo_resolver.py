# backend/directory_search/services/search/geo_resolver.py
"""
Location resolution for search requests.

Builds a GeoAnchor from the strongest available signal:
1) a state keyword (or known city) in the query text
2) an explicit 5-digit ZIP in the query text
3) device geolocation, reverse geocoded
4) a ZIP supplied with the user location
5) the default anchor (Fishers, IN)

Resolution never raises. Failures fall through to the default anchor with
a typed error attached so the caller can still answer the search.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any, Awaitable, Dict, Optional

from ...core.constants import (
    DEFAULT_LOCATION_CONFIDENCE,
    GEOLOCATION_CONFIDENCE,
    QUERY_LOCATION_CONFIDENCE,
    ZIP_LOCATION_CONFIDENCE,
)
from ..geocoding.service import GeocodingOutcome, GeocodingService
from . import patterns
from .config import SearchConfig, get_search_config
from .vocabulary import DEFAULT_STATE, STATE_TABLE, StateInfo, Vocabulary, normalize_text

logger = logging.getLogger(__name__)


class GeoSource(str, Enum):
    QUERY = "query"
    GEOLOCATION = "geolocation"
    ZIP = "zip"
    DEFAULT = "default"


class GeoErrorType(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    GEOCODING_FAILURE = "geocoding_failure"


@dataclass(frozen=True)
class GeoResolutionError:
    type: GeoErrorType
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type.value, "message": self.message}


@dataclass(frozen=True)
class GeoAnchor:
    """Resolved geographic point, radius and provenance for one request."""

    lat: float
    lng: float
    city: str
    state: str
    zip: str
    radius_miles: float
    source: GeoSource
    is_near_me: bool = False
    confidence: float = DEFAULT_LOCATION_CONFIDENCE
    needs_review: bool = False
    error: Optional[GeoResolutionError] = None

    @property
    def has_point(self) -> bool:
        """True when the anchor carries a concrete user point for distance ranking."""
        return self.source in (GeoSource.GEOLOCATION, GeoSource.ZIP)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lat": self.lat,
            "lng": self.lng,
            "city": self.city,
            "state": self.state,
            "zip": self.zip,
            "radius": self.radius_miles,
            "source": self.source.value,
            "isNearMe": self.is_near_me,
            "confidence": self.confidence,
            "needsReview": self.needs_review,
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass(frozen=True)
class UserLocation:
    """Client-supplied location hints."""

    lat: Optional[float] = None
    lng: Optional[float] = None
    zip: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    geolocation_error: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None


def _valid_coordinates(lat: float, lng: float) -> bool:
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0 and not (lat == 0 and lng == 0)


class GeoResolver:
    def __init__(
        self,
        geocoding: GeocodingService,
        config: Optional[SearchConfig] = None,
        vocabulary: Optional[Vocabulary] = None,
    ) -> None:
        self.geocoding = geocoding
        self.config = config or get_search_config()
        self.vocabulary = vocabulary or Vocabulary(
            extra_synonyms=self.config.extra_synonyms, extra_states=self.config.extra_states
        )

    def default_anchor(self, error: Optional[GeoResolutionError] = None, needs_review: bool = False) -> GeoAnchor:
        home: StateInfo = self.vocabulary.state(DEFAULT_STATE) or STATE_TABLE[DEFAULT_STATE]
        return GeoAnchor(
            lat=home.lat,
            lng=home.lng,
            city=home.city,
            state=home.abbr,
            zip=home.zip,
            radius_miles=self.config.default_radius_miles,
            source=GeoSource.DEFAULT,
            is_near_me=False,
            confidence=DEFAULT_LOCATION_CONFIDENCE,
            needs_review=needs_review,
            error=error,
        )

    def _fail(self, error_type: GeoErrorType, message: str, needs_review: bool = False) -> GeoAnchor:
        logger.warning("Location resolution fell back to default (%s): %s", error_type.value, message)
        return self.default_anchor(GeoResolutionError(error_type, message), needs_review=needs_review)

    async def _bounded(self, lookup: Awaitable[GeocodingOutcome]) -> GeocodingOutcome:
        return await asyncio.wait_for(lookup, timeout=self.config.location_timeout_s)

    def resolve_from_query(self, text: str) -> Optional[GeoAnchor]:
        """Anchor on a state keyword, or a known city of the default state, in the text."""
        state = self.vocabulary.match_state(text)
        city_name: Optional[str] = None
        if state is None:
            cities = self.vocabulary.match_cities(normalize_text(text))
            if not cities:
                return None
            state = self.vocabulary.state(DEFAULT_STATE)
            if state is None:
                return None
            city_name = cities[0].title()
        return GeoAnchor(
            lat=state.lat,
            lng=state.lng,
            city=city_name or state.city,
            state=state.abbr,
            zip=state.zip,
            radius_miles=self.config.query_radius_miles,
            source=GeoSource.QUERY,
            is_near_me=False,
            confidence=QUERY_LOCATION_CONFIDENCE,
        )

    async def resolve_from_zip(self, zip_code: Any) -> GeoAnchor:
        candidate = str(zip_code).strip() if zip_code is not None else ""
        if not patterns.ZIP_EXACT.match(candidate):
            return self._fail(
                GeoErrorType.GEOCODING_FAILURE, f"Invalid ZIP code: {candidate!r}", needs_review=True
            )
        try:
            outcome = await self._bounded(self.geocoding.geocode_postal_code(candidate))
        except asyncio.TimeoutError:
            return self._fail(
                GeoErrorType.TIMEOUT, f"ZIP geocoding timed out for {candidate}", needs_review=True
            )
        except Exception as exc:
            logger.exception("ZIP geocoding raised for %s", candidate)
            return self._fail(GeoErrorType.GEOCODING_FAILURE, str(exc), needs_review=True)
        if not outcome.success or outcome.latitude is None or outcome.longitude is None:
            return self._fail(
                GeoErrorType.GEOCODING_FAILURE,
                outcome.error or f"Could not geocode ZIP {candidate}",
                needs_review=True,
            )
        return GeoAnchor(
            lat=outcome.latitude,
            lng=outcome.longitude,
            city=outcome.city or "Unknown",
            state=outcome.state or "Unknown",
            zip=candidate,
            radius_miles=self.config.zip_radius_miles,
            source=GeoSource.ZIP,
            is_near_me=False,
            confidence=ZIP_LOCATION_CONFIDENCE,
        )

    async def resolve_from_geolocation(
        self, lat: Optional[float], lng: Optional[float], error_type: Optional[str] = None
    ) -> GeoAnchor:
        if error_type:
            try:
                kind = GeoErrorType(error_type)
            except ValueError:
                kind = GeoErrorType.POSITION_UNAVAILABLE
            return self._fail(kind, f"Device geolocation unavailable: {error_type}")
        if lat is None or lng is None or not _valid_coordinates(lat, lng):
            return self._fail(GeoErrorType.POSITION_UNAVAILABLE, f"Invalid coordinates: {lat}, {lng}")

        try:
            outcome = await self._bounded(self.geocoding.reverse_geocode(lat, lng))
        except asyncio.TimeoutError:
            return self._fail(GeoErrorType.TIMEOUT, "Reverse geocoding timed out")
        except Exception as exc:
            logger.exception("Reverse geocoding raised for %s,%s", lat, lng)
            return self._fail(GeoErrorType.GEOCODING_FAILURE, str(exc))

        if not outcome.success:
            return self._fail(GeoErrorType.GEOCODING_FAILURE, outcome.error or "Reverse geocoding failed")
        return GeoAnchor(
            lat=lat,
            lng=lng,
            city=outcome.city or "Unknown",
            state=outcome.state or "Unknown",
            zip=outcome.zip_code or "",
            radius_miles=self.config.near_me_radius_miles,
            source=GeoSource.GEOLOCATION,
            is_near_me=True,
            confidence=GEOLOCATION_CONFIDENCE,
        )

    async def resolve(self, text: str, user_location: Optional[UserLocation] = None) -> GeoAnchor:
        """Pick the anchor for a request; always returns one."""
        raw = text if isinstance(text, str) else ""

        from_query = self.resolve_from_query(raw)
        if from_query is not None:
            logger.debug("Anchor from query keyword: %s", from_query.state)
            return from_query

        zip_match = patterns.ZIP_CODE.search(normalize_text(raw))
        if zip_match:
            return await self.resolve_from_zip(zip_match.group(1))

        if user_location is not None:
            if user_location.has_coordinates:
                return await self.resolve_from_geolocation(
                    user_location.lat, user_location.lng, user_location.geolocation_error
                )
            if user_location.zip:
                return await self.resolve_from_zip(user_location.zip)
            if user_location.geolocation_error:
                return await self.resolve_from_geolocation(None, None, user_location.geolocation_error)

        return self.default_anchor()

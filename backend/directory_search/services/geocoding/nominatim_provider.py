"""OpenStreetMap Nominatim geocoding provider."""

import asyncio
import logging
from time import monotonic
from typing import Any, Dict, Optional

import httpx

from ...core.config import settings
from ...core.exceptions import GeocodingProviderError
from .base import GeocodedAddress, GeocodingProvider

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}

US_STATE_ABBREVIATIONS: Dict[str, str] = {
    "alabama": "AL", "alaska": "AK", "arizona": "AZ", "arkansas": "AR", "california": "CA",
    "colorado": "CO", "connecticut": "CT", "delaware": "DE", "florida": "FL", "georgia": "GA",
    "hawaii": "HI", "idaho": "ID", "illinois": "IL", "indiana": "IN", "iowa": "IA",
    "kansas": "KS", "kentucky": "KY", "louisiana": "LA", "maine": "ME", "maryland": "MD",
    "massachusetts": "MA", "michigan": "MI", "minnesota": "MN", "mississippi": "MS",
    "missouri": "MO", "montana": "MT", "nebraska": "NE", "nevada": "NV", "new hampshire": "NH",
    "new jersey": "NJ", "new mexico": "NM", "new york": "NY", "north carolina": "NC",
    "north dakota": "ND", "ohio": "OH", "oklahoma": "OK", "oregon": "OR", "pennsylvania": "PA",
    "rhode island": "RI", "south carolina": "SC", "south dakota": "SD", "tennessee": "TN",
    "texas": "TX", "utah": "UT", "vermont": "VT", "virginia": "VA", "washington": "WA",
    "west virginia": "WV", "wisconsin": "WI", "wyoming": "WY", "district of columbia": "DC",
}


def normalize_state(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    cleaned = value.strip()
    if len(cleaned) == 2:
        return cleaned.upper()
    return US_STATE_ABBREVIATIONS.get(cleaned.lower(), cleaned)


class NominatimProvider(GeocodingProvider):
    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout_s: Optional[float] = None,
        min_interval_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.nominatim_base_url).rstrip("/")
        self.user_agent = user_agent or settings.geocoding_user_agent
        self.timeout_s = settings.geocoding_timeout_seconds if timeout_s is None else timeout_s
        self.min_interval_s = (
            settings.geocoding_min_interval_seconds if min_interval_s is None else min_interval_s
        )
        self._transport = transport
        self._pace_lock = asyncio.Lock()
        self._last_request_at: Optional[float] = None

    async def geocode(self, address: str) -> Optional[GeocodedAddress]:
        data = await self._get(
            "/search",
            {"format": "json", "q": address, "limit": 1, "addressdetails": 1, "countrycodes": "us"},
        )
        if not isinstance(data, list) or not data:
            return None
        return self._parse_result(data[0], provider_id="nominatim:search")

    async def reverse_geocode(self, lat: float, lng: float) -> Optional[GeocodedAddress]:
        data = await self._get(
            "/reverse",
            {"format": "json", "lat": lat, "lon": lng, "zoom": 10, "addressdetails": 1},
        )
        if not isinstance(data, dict) or not data or data.get("error"):
            return None
        return self._parse_result(data, provider_id="nominatim:reverse")

    async def _pace(self) -> None:
        # Nominatim usage policy allows at most one request per second
        async with self._pace_lock:
            if self._last_request_at is not None and self.min_interval_s > 0:
                wait = self._last_request_at + self.min_interval_s - monotonic()
                if wait > 0:
                    await asyncio.sleep(wait)
            self._last_request_at = monotonic()

    async def _get(self, path: str, params: Dict[str, Any]) -> Any:
        await self._pace()
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_s, headers=headers, transport=self._transport
            ) as client:
                resp = await client.get(f"{self.base_url}{path}", params=params)
        except httpx.TimeoutException as exc:
            raise GeocodingProviderError("Geocoding request timeout") from exc
        except httpx.HTTPError as exc:
            raise GeocodingProviderError(f"Geocoding network error: {exc}") from exc

        if resp.status_code != 200:
            raise GeocodingProviderError(
                f"Geocoding request failed with status {resp.status_code}",
                status_code=resp.status_code,
                retryable=resp.status_code in _RETRYABLE_STATUS,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise GeocodingProviderError("Malformed geocoding response", retryable=False) from exc

    def _parse_result(self, result: dict[str, Any], provider_id: str) -> Optional[GeocodedAddress]:
        try:
            lat = float(result["lat"])
            lng = float(result["lon"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Nominatim result without usable coordinates: %s", result.get("place_id"))
            return None
        address = result.get("address") or {}
        city = address.get("city") or address.get("town") or address.get("village")
        return GeocodedAddress(
            latitude=lat,
            longitude=lng,
            formatted_address=result.get("display_name") or "",
            city=city,
            state=normalize_state(address.get("state")),
            postal_code=address.get("postcode"),
            country=(address.get("country_code") or "").upper() or None,
            provider_id=f"{provider_id}:{result.get('place_id', '')}",
            provider_data={"osm_type": result.get("osm_type"), "importance": result.get("importance")},
            confidence_score=float(result.get("importance") or 1.0),
        )

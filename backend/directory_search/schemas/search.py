# backend/directory_search/schemas/search.py
"""
Pydantic schemas for the directory search API.

Listing fields keep the store's snake_case names; request and metadata
fields use the camelCase keys the web client sends and reads.
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr

# =============================================================================
# Request Schemas
# =============================================================================


class UserLocationIn(BaseModel):
    """Location hints reported by the client device."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    lat: Optional[float] = Field(None, ge=-90, le=90, description="Device latitude")
    lng: Optional[float] = Field(None, ge=-180, le=180, description="Device longitude")
    zip: Optional[str] = Field(None, max_length=10, description="ZIP code entered by the user")
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    geolocation_error: Optional[
        Literal["permission_denied", "position_unavailable", "timeout"]
    ] = Field(None, alias="geolocationError", description="Device geolocation failure, if any")


class SearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    query: StrictStr = Field(..., min_length=1, description="Free-text search query")
    user_location: Optional[UserLocationIn] = Field(None, alias="userLocation")
    limit: Optional[int] = Field(None, ge=1, le=1000, description="Page size")
    offset: int = Field(0, ge=0, description="Rows to skip after ranking")


# =============================================================================
# Result Schemas
# =============================================================================


class ServiceRecord(BaseModel):
    """Read-only listing as stored."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    service_type: str
    description: Optional[str] = None
    address: Optional[str] = None
    address_line_2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_verified: bool = False
    needs_geocoding_review: bool = False
    website_url: Optional[str] = None
    email: Optional[str] = None
    image_url: Optional[str] = None


class RankedResult(ServiceRecord):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    distance: Optional[float] = Field(None, description="Miles from the anchor, 1 decimal")
    is_exact_match: bool = Field(False, alias="isExactMatch")


class SearchMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    original_query: str = Field(..., alias="originalQuery")
    parsed_query: Dict[str, Any] = Field(..., alias="parsedQuery")
    result_count: int = Field(..., alias="resultCount")
    total_count: int = Field(..., alias="totalCount")
    search_radius: float = Field(..., alias="searchRadius")
    search_type: str = Field(..., alias="searchType", description="service | product | fallback")
    filters: Dict[str, Any] = Field(default_factory=dict)
    location: Dict[str, Any] = Field(default_factory=dict)


class SearchResponse(BaseModel):
    success: bool = True
    results: List[RankedResult]
    metadata: SearchMetadata


class SuggestionsResponse(BaseModel):
    success: bool = True
    suggestions: List[str]

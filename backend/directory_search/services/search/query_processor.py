# backend/directory_search/services/search/query_processor.py
"""
Keyword query interpretation.

Turns free text plus optional client location into an immutable ParsedQuery:
normalized text, canonical service and product entities, location entities,
boolean and graded filters, descriptive modifiers, a resolved GeoAnchor and
a one-line intent summary. Garbage input yields an empty parse anchored at
the default location; nothing here raises for bad text.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, List, Optional, Tuple

from . import patterns
from .config import SearchConfig, get_search_config
from .geo_resolver import GeoAnchor, GeoResolver, GeoSource, UserLocation
from .vocabulary import Vocabulary, normalize_text

logger = logging.getLogger(__name__)

PRODUCT_SERVICE_TYPE = "pet_products"


@dataclass(frozen=True)
class QueryEntities:
    services: Tuple[str, ...] = ()
    products: Tuple[str, ...] = ()
    locations: Tuple[str, ...] = ()
    modifiers: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "services": list(self.services),
            "products": list(self.products),
            "locations": list(self.locations),
            "modifiers": list(self.modifiers),
        }


@dataclass(frozen=True)
class SearchFilters:
    near_me: bool = False
    verified: bool = False
    open_now: bool = False
    mobile: bool = False
    organic: bool = False
    senior: bool = False
    puppy: bool = False
    availability: Optional[str] = None  # "24_7" | "emergency"
    quality: Optional[str] = None  # "premium" | "budget"
    size: Optional[str] = None  # "large" | "medium" | "small"
    min_rating: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Only the filters that are set, keyed for the wire."""
        wire = {
            "nearMe": self.near_me,
            "verified": self.verified,
            "openNow": self.open_now,
            "mobile": self.mobile,
            "organic": self.organic,
            "senior": self.senior,
            "puppy": self.puppy,
            "availability": self.availability,
            "quality": self.quality,
            "size": self.size,
            "minRating": self.min_rating,
        }
        return {k: v for k, v in wire.items() if v not in (None, False)}


@dataclass(frozen=True)
class ParsedQuery:
    """Structured representation of a keyword search query."""

    original_query: str
    normalized_query: str
    search_type: str  # "service" | "product"
    entities: QueryEntities
    location: GeoAnchor
    filters: SearchFilters = field(default_factory=SearchFilters)
    intent: str = "General search"
    confidence: float = 0.5

    def to_dict(self) -> Dict[str, Any]:
        return {
            "originalQuery": self.original_query,
            "normalizedQuery": self.normalized_query,
            "searchType": self.search_type,
            "entities": self.entities.to_dict(),
            "filters": self.filters.to_dict(),
            "intent": self.intent,
            "confidence": self.confidence,
        }


def _dedupe(items: List[str]) -> Tuple[str, ...]:
    seen: List[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return tuple(seen)


def extract_filters(text: str, near_me: bool) -> SearchFilters:
    """Detect filter keywords in the lower-cased raw text."""
    lowered = text.lower()

    availability: Optional[str] = None
    if patterns.AVAILABILITY_24_7.search(lowered):
        availability = "24_7"
    elif patterns.AVAILABILITY_EMERGENCY.search(lowered):
        availability = "emergency"

    quality: Optional[str] = None
    if patterns.QUALITY_PREMIUM.search(lowered):
        quality = "premium"
    elif patterns.QUALITY_BUDGET.search(lowered):
        quality = "budget"

    size: Optional[str] = None
    if patterns.SIZE_LARGE.search(lowered):
        size = "large"
    elif patterns.SIZE_MEDIUM.search(lowered):
        size = "medium"
    elif patterns.SIZE_SMALL.search(lowered):
        size = "small"

    rating_match = patterns.MIN_RATING.search(lowered)

    return SearchFilters(
        near_me=near_me,
        verified=bool(patterns.VERIFIED.search(lowered)),
        open_now=bool(patterns.OPEN_NOW.search(lowered)),
        mobile=bool(patterns.MOBILE.search(lowered)),
        organic=bool(patterns.ORGANIC.search(lowered)),
        senior=bool(patterns.SENIOR.search(lowered)),
        puppy=bool(patterns.PUPPY.search(lowered)),
        availability=availability,
        quality=quality,
        size=size,
        min_rating=int(rating_match.group(1)) if rating_match else None,
    )


def extract_modifiers(text: str) -> Tuple[str, ...]:
    found: List[str] = []
    for _category, pattern in patterns.MODIFIER_PATTERNS:
        found.extend(m.lower() for m in pattern.findall(text))
    return _dedupe(found)


def determine_search_type(services: Tuple[str, ...], products: Tuple[str, ...]) -> str:
    if products and all(s == PRODUCT_SERVICE_TYPE for s in services):
        return "product"
    return "service"


def describe_intent(entities: QueryEntities, anchor: GeoAnchor) -> str:
    """One-line human summary of what the query asks for."""
    if entities.services and entities.products:
        head = "Looking for services and products"
    elif entities.services:
        head = f"Looking for {', '.join(entities.services)} services"
    elif entities.products:
        head = f"Looking for {', '.join(entities.products)} products"
    elif entities.locations or anchor.source is not GeoSource.DEFAULT:
        head = "Location-based search"
    else:
        return "General search"

    if anchor.source is GeoSource.QUERY:
        return f"{head} in {anchor.state}"
    if anchor.source is GeoSource.GEOLOCATION:
        return f"{head} near you"
    if anchor.source is GeoSource.ZIP:
        return f"{head} near {anchor.zip}"
    return head


class QueryProcessor:
    def __init__(
        self,
        resolver: GeoResolver,
        config: Optional[SearchConfig] = None,
        vocabulary: Optional[Vocabulary] = None,
    ) -> None:
        self.resolver = resolver
        self.config = config or get_search_config()
        self.vocabulary = vocabulary or resolver.vocabulary

    def extract_entities(self, text: str) -> QueryEntities:
        normalized = normalize_text(text)
        if not normalized:
            return QueryEntities()

        services = _dedupe(self.vocabulary.match_services(normalized))
        products = _dedupe(self.vocabulary.match_products(normalized))

        locations: List[str] = []
        state = self.vocabulary.match_state(text)
        if state is not None:
            locations.append(state.abbr)
        locations.extend(patterns.ZIP_CODE.findall(normalized))
        locations.extend(self.vocabulary.match_cities(normalized))
        if patterns.NEAR_ME.search(normalized):
            locations.append("near_me")

        return QueryEntities(
            services=services,
            products=products,
            locations=_dedupe(locations),
            modifiers=extract_modifiers(text),
        )

    async def process_search_query(
        self, text: Any, fallback_location: Optional[UserLocation] = None
    ) -> ParsedQuery:
        raw = text if isinstance(text, str) else ""
        normalized = normalize_text(raw)
        entities = self.extract_entities(raw)

        anchor = await self.resolver.resolve(raw, fallback_location)
        near_me = "near_me" in entities.locations or anchor.is_near_me
        filters = extract_filters(raw, near_me=near_me)
        search_type = determine_search_type(entities.services, entities.products)

        parsed = ParsedQuery(
            original_query=raw,
            normalized_query=normalized,
            search_type=search_type,
            entities=entities,
            location=anchor,
            filters=filters,
            intent=describe_intent(entities, anchor),
            confidence=anchor.confidence,
        )
        logger.debug(
            "Parsed query %r: services=%s products=%s anchor=%s",
            raw,
            entities.services,
            entities.products,
            anchor.source.value,
        )
        return parsed

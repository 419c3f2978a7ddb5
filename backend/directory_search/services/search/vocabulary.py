# backend/directory_search/services/search/vocabulary.py
"""
Keyword vocabulary for query interpretation.

Holds the canonical service and product types with their synonyms, the
state reference table used for query-keyword anchors, the known Indiana
cities, and center-of-state coordinates used when geocoding fails.

`Vocabulary` compiles the tables into word-boundary patterns once; extra
synonyms and states can be merged in from configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Dict, Iterable, List, Mapping, Optional, Pattern, Sequence, Tuple

from ...core.constants import MAX_SUGGESTIONS

logger = logging.getLogger(__name__)

# =============================================================================
# Services
# =============================================================================

SERVICE_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "groomer": (
        "groomer", "grooming", "groom", "grooming salon", "pet salon", "salon",
        "dog spa", "pet spa", "spa", "pet grooming", "dog grooming", "pet wash",
        "dog wash", "wash", "pet bath", "dog bath", "bath", "trim", "haircut",
        "nail trim", "nail clipping", "ear cleaning",
    ),
    "dog_trainer": (
        "dog trainer", "trainer", "training", "pet trainer", "obedience",
        "behavior", "puppy training", "puppy class", "dog class", "agility",
        "socialization", "dog manners", "dog commands",
    ),
    "veterinarian": (
        "vet", "veterinarian", "veterinary", "vet clinic", "veterinary clinic",
        "clinic", "animal hospital", "pet hospital", "vet hospital", "hospital",
        "emergency vet", "urgent care vet", "pet doctor", "animal doctor",
        "vet surgery", "surgery", "holistic vet", "holistic veterinarian",
    ),
    "boarding_daycare": (
        "daycare", "day care", "boarding", "kennel", "pet sitting", "sitter",
        "pet sitter", "overnight", "pet care",
    ),
    "dog_park": (
        "dog park", "park", "playground", "play area", "off leash", "fenced",
        "recreation",
    ),
    "pet_products": (
        "products", "supplies", "pet store", "pet shop", "pet supplies", "retail",
    ),
    "apartments": (
        "apartment", "rental", "housing", "residence", "residential",
        "pet friendly",
    ),
    "landscape_contractors": (
        "landscaping", "landscape", "landscaper", "yard", "garden", "lawn",
        "contractor",
    ),
}

# =============================================================================
# Products
# =============================================================================

PRODUCT_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "food": (
        "food", "kibble", "wet food", "canned food", "dry food", "raw food",
        "grain free", "puppy food", "senior food",
    ),
    "toys": (
        "toy", "chew toy", "ball", "frisbee", "rope toy", "tug toy",
        "puzzle toy", "squeaky toy",
    ),
    "beds": ("bed", "bedding", "crate", "cushion", "orthopedic bed"),
    "collars": ("collar", "harness", "leash", "id tag", "name tag", "gps collar"),
    "treats": ("treat", "snack", "biscuit", "chew treat", "dental treat"),
    "supplements": (
        "supplement", "vitamin", "probiotic", "fish oil", "glucosamine",
        "hemp oil",
    ),
    "accessories": (
        "accessories", "bowl", "feeder", "clothing", "costume", "jacket",
        "sweater", "boots", "raincoat", "bandana",
    ),
}

# =============================================================================
# Locations
# =============================================================================


@dataclass(frozen=True)
class StateInfo:
    """Reference data for a state keyword anchor."""

    abbr: str
    name: str
    city: str
    zip: str
    lat: float
    lng: float


STATE_TABLE: Dict[str, StateInfo] = {
    "IN": StateInfo("IN", "indiana", "Fishers", "46037", 39.9568, -86.0075),
    "IL": StateInfo("IL", "illinois", "Chicago", "60601", 41.8781, -87.6298),
    "OH": StateInfo("OH", "ohio", "Columbus", "43215", 39.9612, -82.9988),
    "MI": StateInfo("MI", "michigan", "Detroit", "48201", 42.3314, -83.0458),
    "KY": StateInfo("KY", "kentucky", "Louisville", "40202", 38.2527, -85.7585),
}

DEFAULT_STATE = "IN"

# Two-letter abbreviations that are also everyday English words.
# These only count as a state when typed in upper case.
AMBIGUOUS_STATE_ABBREVIATIONS = frozenset(
    {"in", "oh", "mi", "me", "or", "ok", "hi", "id", "la", "pa", "ma", "al", "co", "de", "ga", "wa"}
)

# Center-of-state coordinates used when an address cannot be geocoded
STATE_DEFAULT_COORDINATES: Dict[str, Tuple[float, float]] = {
    "IN": (39.8282, -86.1384),
    "IL": (40.6331, -89.3985),
    "OH": (40.3888, -82.7649),
    "MI": (44.3148, -85.6024),
    "KY": (37.6681, -84.6701),
    "CA": (36.7783, -119.4179),
}

INDIANA_CITIES: Tuple[str, ...] = (
    "indianapolis", "indy", "fishers", "carmel", "noblesville", "westfield",
    "greenwood", "avon", "plainfield", "zionsville", "brownsburg", "danville",
    "pittsboro", "lizton", "coatesville", "clayton", "amity", "bainbridge",
)

CITY_ALIASES: Dict[str, str] = {"indy": "indianapolis"}

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lowercase, strip punctuation to spaces, collapse whitespace."""
    if not isinstance(text, str):
        return ""
    cleaned = _NON_WORD.sub(" ", text.lower())
    return _WHITESPACE.sub(" ", cleaned).strip()


def default_coordinates_for_state(state: Optional[str]) -> Tuple[float, float]:
    key = (state or "").strip().upper()
    return STATE_DEFAULT_COORDINATES.get(key, STATE_DEFAULT_COORDINATES[DEFAULT_STATE])


def _keyword_pattern(keywords: Iterable[str]) -> Optional[Pattern[str]]:
    # Longest first so multi-word synonyms win over their prefixes
    terms = sorted({normalize_text(k) for k in keywords if normalize_text(k)}, key=len, reverse=True)
    if not terms:
        return None
    body = "|".join(re.escape(t).replace(r"\ ", r"\s+") for t in terms)
    return re.compile(rf"\b(?:{body})(?:s|es)?\b")


def _compile_table(table: Mapping[str, Sequence[str]]) -> List[Tuple[str, Pattern[str]]]:
    compiled: List[Tuple[str, Pattern[str]]] = []
    for name, words in table.items():
        pattern = _keyword_pattern(words)
        if pattern is None:
            logger.warning("Skipping %s: no usable keywords", name)
            continue
        compiled.append((name, pattern))
    return compiled


class Vocabulary:
    """Compiled keyword tables for one configuration."""

    def __init__(
        self,
        extra_synonyms: Optional[Mapping[str, Sequence[str]]] = None,
        extra_states: Optional[Mapping[str, StateInfo]] = None,
    ) -> None:
        services: Dict[str, Tuple[str, ...]] = dict(SERVICE_SYNONYMS)
        for service_type, words in (extra_synonyms or {}).items():
            services[service_type] = tuple(services.get(service_type, ())) + tuple(words)
        self.service_synonyms = services
        self.product_synonyms = dict(PRODUCT_SYNONYMS)

        states = dict(STATE_TABLE)
        states.update({k.upper(): v for k, v in (extra_states or {}).items()})
        self.states = states

        self._service_patterns = _compile_table(services)
        self._product_patterns = _compile_table(self.product_synonyms)
        self._state_name_pattern = re.compile(
            r"\b(" + "|".join(re.escape(s.name) for s in states.values()) + r")\b",
            re.IGNORECASE,
        )
        self._state_abbr_pattern = re.compile(
            r"\b(" + "|".join(re.escape(abbr) for abbr in states) + r")\b",
            re.IGNORECASE,
        )
        self._city_pattern = re.compile(r"\b(" + "|".join(INDIANA_CITIES) + r")\b")

    def match_services(self, normalized: str) -> List[str]:
        return [name for name, pattern in self._service_patterns if pattern.search(normalized)]

    def match_products(self, normalized: str) -> List[str]:
        return [name for name, pattern in self._product_patterns if pattern.search(normalized)]

    def match_cities(self, normalized: str) -> List[str]:
        found: List[str] = []
        for match in self._city_pattern.finditer(normalized):
            city = CITY_ALIASES.get(match.group(1), match.group(1))
            if city not in found:
                found.append(city)
        return found

    def match_state(self, raw_text: str) -> Optional[StateInfo]:
        """
        Find a state keyword; full names first, then abbreviations.

        Abbreviations that double as English words count only in upper case,
        and lose to any other abbreviation. Among them the last one wins
        ("GROOMERS IN MI" is Michigan).
        """
        if not isinstance(raw_text, str) or not raw_text:
            return None
        by_name = {s.name: s for s in self.states.values()}
        name_match = self._state_name_pattern.search(raw_text)
        if name_match:
            return by_name.get(name_match.group(1).lower())
        ambiguous: Optional[str] = None
        for match in self._state_abbr_pattern.finditer(raw_text):
            token = match.group(1)
            if token.lower() not in AMBIGUOUS_STATE_ABBREVIATIONS:
                return self.states.get(token.upper())
            if token == token.upper():
                ambiguous = token
        return self.states.get(ambiguous) if ambiguous else None

    def state(self, abbr: Optional[str]) -> Optional[StateInfo]:
        return self.states.get((abbr or "").strip().upper())

    def suggestions(self, partial: str, limit: int = MAX_SUGGESTIONS) -> List[str]:
        """Canonical names whose name or synonyms contain `partial`."""
        needle = normalize_text(partial)
        if not needle:
            return []
        results: List[str] = []
        tables: Sequence[Mapping[str, Sequence[str]]] = (self.service_synonyms, self.product_synonyms)
        for table in tables:
            for canonical, words in table.items():
                if needle in canonical or any(needle in normalize_text(w) for w in words):
                    if canonical not in results:
                        results.append(canonical)
        for city in INDIANA_CITIES:
            canonical_city = CITY_ALIASES.get(city, city)
            if needle in city and canonical_city not in results:
                results.append(canonical_city)
        return results[:limit]

# backend/directory_search/services/search/config.py
"""
Configuration for the search pipeline.

Provides runtime-configurable settings for:
- anchor radii per location source
- result caps and the fallback query size
- per-stage timeouts
- extra state and synonym tables

Settings are loaded from the application settings at first access.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
from threading import Lock
from typing import Any, Dict, List, Optional

from ...core.config import settings
from ...core.constants import (
    DEFAULT_LOCATION_RADIUS,
    DEFAULT_NEAR_ME_RADIUS,
    DEFAULT_SEARCH_RADIUS,
    FALLBACK_RESULT_LIMIT,
    FALLBACK_SEARCH_RADIUS,
    MAX_SEARCH_RESULTS,
)
from .vocabulary import StateInfo

logger = logging.getLogger(__name__)

# Location lookups may use at most this share of the query-processing stage
LOCATION_SHARE_OF_STAGE = 0.8


@dataclass
class SearchConfig:
    """Configuration for the search pipeline."""

    # Radii in miles
    query_radius_miles: float = DEFAULT_SEARCH_RADIUS
    near_me_radius_miles: float = DEFAULT_NEAR_ME_RADIUS
    zip_radius_miles: float = DEFAULT_LOCATION_RADIUS
    default_radius_miles: float = DEFAULT_LOCATION_RADIUS
    fallback_radius_miles: float = FALLBACK_SEARCH_RADIUS

    # Store limits
    max_results: int = MAX_SEARCH_RESULTS
    fallback_limit: int = FALLBACK_RESULT_LIMIT

    # Timeouts
    stage_timeout_s: float = 15.0
    geolocation_timeout_s: float = 10.0

    # Vocabulary extensions
    extra_synonyms: Dict[str, List[str]] = field(default_factory=dict)
    extra_states: Dict[str, StateInfo] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "SearchConfig":
        """Load configuration from application settings."""
        return cls(
            max_results=settings.search_max_results,
            fallback_limit=settings.search_fallback_limit,
            stage_timeout_s=settings.search_stage_timeout_seconds,
            geolocation_timeout_s=settings.geolocation_timeout_seconds,
            extra_synonyms=_parse_synonyms(settings.search_synonyms_json),
            extra_states=_parse_states(settings.search_state_table_json),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for diagnostics."""
        return {
            "query_radius_miles": self.query_radius_miles,
            "near_me_radius_miles": self.near_me_radius_miles,
            "zip_radius_miles": self.zip_radius_miles,
            "default_radius_miles": self.default_radius_miles,
            "fallback_radius_miles": self.fallback_radius_miles,
            "max_results": self.max_results,
            "fallback_limit": self.fallback_limit,
            "stage_timeout_s": self.stage_timeout_s,
            "geolocation_timeout_s": self.geolocation_timeout_s,
            "extra_synonyms": {k: list(v) for k, v in self.extra_synonyms.items()},
            "extra_states": sorted(self.extra_states),
        }

    @property
    def location_timeout_s(self) -> float:
        """Bound on one location lookup, kept under the stage timeout."""
        return max(0.0, min(self.geolocation_timeout_s, self.stage_timeout_s * LOCATION_SHARE_OF_STAGE))


def _load_json_object(raw: Optional[str], name: str) -> Dict[str, Any]:
    if not raw or not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Ignoring %s: invalid JSON (%s)", name, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: expected a JSON object", name)
        return {}
    return data


def _parse_synonyms(raw: Optional[str]) -> Dict[str, List[str]]:
    data = _load_json_object(raw, "SEARCH_SERVICE_SYNONYMS_JSON")
    parsed: Dict[str, List[str]] = {}
    for service_type, words in data.items():
        if isinstance(words, list):
            keywords = [w for w in words if isinstance(w, str) and w.strip()]
            if keywords:
                parsed[str(service_type)] = keywords
            else:
                logger.warning("Ignoring synonym entry %s: no keywords", service_type)
    return parsed


def _parse_states(raw: Optional[str]) -> Dict[str, StateInfo]:
    data = _load_json_object(raw, "SEARCH_STATE_TABLE_JSON")
    parsed: Dict[str, StateInfo] = {}
    for abbr, entry in data.items():
        if not isinstance(entry, dict):
            continue
        try:
            parsed[abbr.upper()] = StateInfo(
                abbr=abbr.upper(),
                name=str(entry["name"]).lower(),
                city=str(entry["city"]),
                zip=str(entry["zip"]),
                lat=float(entry["lat"]),
                lng=float(entry["lng"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring state table entry %s: %s", abbr, exc)
    return parsed


# Thread-safe singleton pattern for config
_config: Optional[SearchConfig] = None
_config_lock = Lock()


def get_search_config() -> SearchConfig:
    """
    Get the search configuration singleton.

    Loads from settings on first access.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:
                _config = SearchConfig.from_env()
    return _config


def reset_search_config() -> None:
    """Reset configuration so the next access reloads from settings."""
    global _config
    with _config_lock:
        _config = None

# backend/directory_search/core/config.py
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


class Settings(BaseSettings):
    """Runtime settings for the directory search service."""

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Root logging level")
    database_url: str = Field(
        default="sqlite:///./directory.db",
        alias="DATABASE_URL",
        description="SQLAlchemy URL of the services store",
    )
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")

    # Rate Limiting Configuration
    rate_limit_enabled: bool = Field(
        default=True, alias="RATE_LIMIT_ENABLED", description="Enable rate limiting (disable for testing)"
    )
    rate_limit_namespace: str = Field(default="directory", alias="RATE_LIMIT_NAMESPACE")
    rate_limit_search_requests: int = Field(
        default=30,
        alias="RATE_LIMIT_SEARCH_REQUESTS",
        description="Search requests allowed per client per window",
    )
    rate_limit_search_window_seconds: int = Field(
        default=60,
        alias="RATE_LIMIT_SEARCH_WINDOW_SECONDS",
        description="Length of the search rate-limit window",
    )

    # Geocoding
    geocoding_provider: str = Field(
        default="nominatim",
        alias="GEOCODING_PROVIDER",
        description="Geocoding provider name: nominatim or mock",
    )
    nominatim_base_url: str = Field(
        default="https://nominatim.openstreetmap.org", alias="NOMINATIM_BASE_URL"
    )
    geocoding_user_agent: str = Field(
        default="DogServicesDirectory/1.0",
        alias="GEOCODING_USER_AGENT",
        description="User-Agent sent to the geocoding provider",
    )
    geocoding_timeout_seconds: float = Field(default=10.0, alias="GEOCODING_TIMEOUT_SECONDS")
    geocoding_min_interval_seconds: float = Field(
        default=1.0,
        alias="GEOCODING_MIN_INTERVAL_SECONDS",
        description="Minimum spacing between requests to the provider",
    )
    geocoding_variant_delay_seconds: float = Field(
        default=1.0,
        alias="GEOCODING_VARIANT_DELAY_SECONDS",
        description="Pause between address variants while geocoding",
    )
    geolocation_timeout_seconds: float = Field(
        default=10.0,
        alias="GEOLOCATION_TIMEOUT_SECONDS",
        description="Bound on reverse geocoding of device coordinates",
    )

    # Retry
    retry_max_attempts: int = Field(default=3, alias="RETRY_MAX_ATTEMPTS")
    retry_delay_ms: int = Field(default=1000, alias="RETRY_DELAY_MS")
    retry_backoff_multiplier: float = Field(default=2.0, alias="RETRY_BACKOFF_MULTIPLIER")

    # Search
    search_max_results: int = Field(default=1000, alias="SEARCH_MAX_RESULTS")
    search_fallback_limit: int = Field(default=10, alias="SEARCH_FALLBACK_LIMIT")
    search_stage_timeout_seconds: float = Field(default=15.0, alias="SEARCH_STAGE_TIMEOUT_SECONDS")
    search_state_table_json: Optional[str] = Field(
        default=None,
        alias="SEARCH_STATE_TABLE_JSON",
        description="JSON object of extra state entries keyed by abbreviation",
    )
    search_synonyms_json: Optional[str] = Field(
        default=None,
        alias="SEARCH_SERVICE_SYNONYMS_JSON",
        description="JSON object mapping service types to extra synonyms",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return (value or "INFO").strip().upper()

    @field_validator("geocoding_provider")
    @classmethod
    def _normalize_provider(cls, value: str) -> str:
        return (value or "nominatim").strip().lower()


settings = Settings()

# backend/tests/conftest.py
"""
Pytest configuration for the directory search service.

Environment is set BEFORE any application import so settings, the engine
and the geocoding provider pick up test values.
"""

import os

# CRITICAL: Set testing mode BEFORE any app imports!
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["GEOCODING_PROVIDER"] = "mock"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RETRY_DELAY_MS"] = "0"
os.environ["GEOCODING_VARIANT_DELAY_SECONDS"] = "0"
os.environ["GEOCODING_MIN_INTERVAL_SECONDS"] = "0"

from typing import List

from fastapi import FastAPI
from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session, sessionmaker

from directory_search.core.config import settings
from directory_search.database import Base, build_engine
from directory_search.main import create_app
from directory_search.models import Service, ServiceSubmission
from directory_search.services.geocoding.mock_provider import MockGeocodingProvider
from directory_search.services.geocoding.service import GeocodingService
from directory_search.services.search.config import reset_search_config
from directory_search.utils.retry import RetryOptions

settings.rate_limit_enabled = False

test_engine = build_engine("sqlite:///:memory:")
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine, expire_on_commit=False)

SEED_SERVICES = [
    {
        "name": "Happy Paws Grooming",
        "service_type": "groomer",
        "address": "8701 E 116th St",
        "city": "Fishers",
        "state": "IN",
        "zip_code": "46037",
        "latitude": 39.9568,
        "longitude": -86.0075,
        "is_verified": True,
    },
    {
        "name": "Bark Avenue Salon",
        "service_type": "groomer",
        "address": "10 W Market St",
        "city": "Indianapolis",
        "state": "IN",
        "zip_code": "46204",
        "latitude": 39.7684,
        "longitude": -86.1581,
    },
    {
        "name": "Windy City Groomers",
        "service_type": "groomer",
        "city": "Chicago",
        "state": "IL",
        "zip_code": "60601",
        "latitude": 41.8781,
        "longitude": -87.6298,
    },
    {
        "name": "Central Bark Dog Park",
        "service_type": "dog_park",
        "city": "Fishers",
        "state": "IN",
        "zip_code": "46038",
        "latitude": 39.95,
        "longitude": -86.01,
    },
    {
        "name": "Carmel Dog Park",
        "service_type": "dog_park",
        "city": "Carmel",
        "state": "IN",
        "zip_code": "46032",
        "latitude": 39.9784,
        "longitude": -86.118,
    },
    {
        "name": "Noblesville Animal Hospital",
        "service_type": "veterinarian",
        "city": "Noblesville",
        "state": "IN",
        "zip_code": "46060",
        "latitude": 40.0456,
        "longitude": -86.0086,
        "is_verified": True,
    },
    {
        "name": "Pet Supply Depot",
        "service_type": "pet_products",
        "city": "Carmel",
        "state": "IN",
        "zip_code": "46032",
    },
]


@pytest.fixture(autouse=True)
def _fresh_search_config():
    reset_search_config()
    yield
    reset_search_config()


@pytest.fixture(scope="function")
def db():
    """Create the schema, yield a session, drop everything afterwards."""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def session_factory(db: Session):
    return TestSessionLocal


@pytest.fixture
def seeded_services(db: Session) -> List[Service]:
    services = [Service(**row) for row in SEED_SERVICES]
    db.add_all(services)
    db.commit()
    return services


@pytest.fixture
def submission(db: Session) -> ServiceSubmission:
    row = ServiceSubmission(
        name="Fishers Dog Spa",
        service_type="groomer",
        address="123 Main St",
        city="Fishers",
        state="IN",
        zip_code="46037",
    )
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def fast_retry() -> RetryOptions:
    return RetryOptions(max_attempts=2, delay_ms=0, backoff_multiplier=1)


@pytest.fixture
def geocoding_service(fast_retry: RetryOptions) -> GeocodingService:
    return GeocodingService(provider=MockGeocodingProvider(), retry_options=fast_retry, variant_delay_s=0)


@pytest.fixture
def app(session_factory, geocoding_service: GeocodingService) -> FastAPI:
    return create_app(session_factory=session_factory, geocoding=geocoding_service, create_tables=False)


@pytest.fixture
def client(app: FastAPI):
    """Create a test client bound to the test database."""
    # Don't use context manager - create directly
    test_client = TestClient(app)
    yield test_client
    test_client.close()

# backend/directory_search/main.py
"""
Directory search API application.

Wires the search pipeline, geocoding and rate limiters onto `app.state`
so routes and tests share one set of collaborators per application.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator, Callable, Optional

from fastapi import FastAPI
from sqlalchemy.orm import Session

from . import __version__
from .core.config import settings
from .database import SessionLocal, engine, init_db
from .errors import register_error_handlers
from .ratelimit import RateLimiter
from .routes import health, prometheus, review, search
from .services.coordinate_service import CoordinateService
from .services.geocoding.service import GeocodingService
from .services.search.search_service import SearchPipeline

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

API_TITLE = "Directory Search API"
API_DESCRIPTION = "Keyword search over pet service and product listings with geographic anchoring."


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info("%s starting up (environment=%s)", API_TITLE, settings.environment)
    if getattr(app.state, "create_tables", True):
        init_db(engine)
    yield
    logger.info("%s shutting down", API_TITLE)


def create_app(
    session_factory: Callable[[], Session] = SessionLocal,
    geocoding: Optional[GeocodingService] = None,
    create_tables: bool = True,
) -> FastAPI:
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )
    register_error_handlers(app)

    geocoding_service = geocoding or GeocodingService()
    app.state.create_tables = create_tables
    app.state.rate_limiters = {"search": RateLimiter.for_bucket("search")}
    app.state.geocoding_service = geocoding_service
    app.state.search_pipeline = SearchPipeline.create(geocoding_service, session_factory)
    app.state.coordinate_service = CoordinateService(geocoding_service, session_factory)

    app.include_router(search.router, prefix="/api/search")
    app.include_router(review.router, prefix="/api/review")
    app.include_router(health.router)
    app.include_router(prometheus.router)
    return app


app = create_app()

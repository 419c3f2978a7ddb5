# backend/directory_search/routes/health.py
"""
Health check endpoint used by load balancers and uptime monitors.
"""

from fastapi import APIRouter, Response
from pydantic import BaseModel

from .. import __version__
from ..core.constants import SERVICE_NAME

router = APIRouter(tags=["health"])


class HealthCheckResponse(BaseModel):
    status: str
    service: str
    version: str


@router.get("/health", response_model=HealthCheckResponse)
def health_check(response: Response) -> HealthCheckResponse:
    """Report that the process is up without touching the store or geocoder."""
    response.headers["Cache-Control"] = "no-store"
    return HealthCheckResponse(status="healthy", service=SERVICE_NAME, version=__version__)

"""
Prometheus metrics endpoint for monitoring infrastructure.

Public, unauthenticated, following standard Prometheus practice. Exposes
the collectors registered on the application registry.
"""

from fastapi import APIRouter, Response

from ..monitoring.prometheus_metrics import CONTENT_TYPE_LATEST, get_metrics

router = APIRouter(tags=["monitoring"])


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(content=get_metrics(), media_type=CONTENT_TYPE_LATEST)

# backend/directory_search/routes/review.py
"""
Review routes for submitted listings.

Endpoints:
    POST /api/review/obtain-coordinates → geocode a submission and store
                                          its coordinates and review flag
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from ..schemas.review import ObtainCoordinatesRequest, ObtainCoordinatesResponse
from ..services.coordinate_service import CoordinateService

router = APIRouter(tags=["review"])


def get_coordinate_service(request: Request) -> CoordinateService:
    return request.app.state.coordinate_service


@router.post("/obtain-coordinates", response_model=ObtainCoordinatesResponse)
async def obtain_coordinates(
    payload: Any = Body(None),
    service: CoordinateService = Depends(get_coordinate_service),
) -> ObtainCoordinatesResponse:
    request = ObtainCoordinatesRequest.model_validate(payload if isinstance(payload, dict) else {})
    return await service.obtain_coordinates(request)

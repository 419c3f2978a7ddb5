# backend/directory_search/services/coordinate_service.py
"""
Coordinate assignment for submitted listings.

Geocodes a submission's address (falling back to the state's default
coordinates) and persists latitude, longitude and the review flag.
Writes to the same submission are serialized.
"""

import asyncio
import logging
from typing import Callable

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException, ValidationException
from ..core.record_lock import record_lock
from ..database import SessionLocal
from ..repositories.service_submission_repository import ServiceSubmissionRepository
from ..schemas.review import ObtainCoordinatesRequest, ObtainCoordinatesResponse
from .geocoding.service import GeocodingService

logger = logging.getLogger(__name__)

MESSAGE_SUCCESS = "Coordinates obtained successfully"
MESSAGE_FALLBACK = "Coordinates obtained using fallback method - please verify address accuracy"


class CoordinateService:
    def __init__(
        self,
        geocoding: GeocodingService,
        session_factory: Callable[[], Session] = SessionLocal,
    ) -> None:
        self.geocoding = geocoding
        self.session_factory = session_factory

    def _submission_exists(self, submission_id: str) -> bool:
        db = self.session_factory()
        try:
            return ServiceSubmissionRepository(db).get_by_id(submission_id) is not None
        finally:
            db.close()

    def _persist(self, submission_id: str, latitude: float, longitude: float, needs_review: bool) -> bool:
        db = self.session_factory()
        repo = ServiceSubmissionRepository(db)
        try:
            with repo.transaction():
                updated = repo.update_coordinates(submission_id, latitude, longitude, needs_review)
            return updated is not None
        finally:
            db.close()

    async def obtain_coordinates(self, request: ObtainCoordinatesRequest) -> ObtainCoordinatesResponse:
        missing = request.missing_fields()
        if missing:
            raise ValidationException(
                "Missing required fields", message=f"Missing: {', '.join(missing)}"
            )
        submission_id = (request.submission_id or "").strip()

        async with record_lock("submission", submission_id):
            if not await asyncio.to_thread(self._submission_exists, submission_id):
                raise NotFoundException("Submission not found", details={"submission_id": submission_id})

            outcome = await self.geocoding.geocode_with_default(
                request.address, request.city, request.state, request.zip_code
            )
            if outcome.latitude is None or outcome.longitude is None:
                raise ValidationException("Could not determine coordinates")

            saved = await asyncio.to_thread(
                self._persist, submission_id, outcome.latitude, outcome.longitude, outcome.needs_review
            )
            if not saved:
                raise NotFoundException("Submission not found", details={"submission_id": submission_id})

        logger.info(
            "Stored coordinates for submission %s (needs_review=%s)", submission_id, outcome.needs_review
        )
        return ObtainCoordinatesResponse(
            success=True,
            latitude=outcome.latitude,
            longitude=outcome.longitude,
            needs_geocoding_review=outcome.needs_review,
            message=MESSAGE_FALLBACK if outcome.needs_review else MESSAGE_SUCCESS,
        )

"""Data access for service submissions awaiting review."""

from typing import Optional

from sqlalchemy.orm import Session

from ..models.service_submission import ServiceSubmission
from .base_repository import BaseRepository


class ServiceSubmissionRepository(BaseRepository[ServiceSubmission]):
    def __init__(self, db: Session):
        super().__init__(db, ServiceSubmission)

    def update_coordinates(
        self, submission_id: str, latitude: float, longitude: float, needs_review: bool
    ) -> Optional[ServiceSubmission]:
        return self.update(
            submission_id,
            latitude=latitude,
            longitude=longitude,
            needs_geocoding_review=needs_review,
        )

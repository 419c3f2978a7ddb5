"""Schemas for the coordinate review endpoint."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ObtainCoordinatesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    submission_id: Optional[str] = Field(None, alias="submissionId")
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None

    def missing_fields(self) -> list[str]:
        required = {
            "submissionId": self.submission_id,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
        }
        return [name for name, value in required.items() if not (value and value.strip())]


class ObtainCoordinatesResponse(BaseModel):
    success: bool
    latitude: float
    longitude: float
    needs_geocoding_review: bool
    message: str

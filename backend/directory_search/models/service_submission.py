"""Listing submitted by a business owner, awaiting review."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, String

from ..core.ulid_helper import generate_ulid
from ..database import Base


class ServiceSubmission(Base):
    __tablename__ = "service_submissions"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    name = Column(String(255), nullable=False)
    service_type = Column(String(50), nullable=False)

    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(2), nullable=True)
    zip_code = Column(String(10), nullable=True)

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    needs_geocoding_review = Column(Boolean, nullable=False, default=False)

    status = Column(String(20), nullable=False, default="pending")  # pending | approved | rejected

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self):
        return f"<ServiceSubmission {self.id} {self.name!r} status={self.status}>"

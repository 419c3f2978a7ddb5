"""
Directory listing model.

One row per dog-related business shown in search results. Coordinates
are nullable; (0, 0) is treated as missing by the ranking code.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, Index, String, Text

from ..core.ulid_helper import generate_ulid
from ..database import Base


class Service(Base):
    __tablename__ = "services"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    name = Column(String(255), nullable=False)
    service_type = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)

    # Address
    address = Column(String(255), nullable=True)
    address_line_2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(2), nullable=True)
    zip_code = Column(String(10), nullable=True, index=True)

    # Coordinates
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    needs_geocoding_review = Column(Boolean, nullable=False, default=False)

    # Contact
    website_url = Column(String(500), nullable=True)
    email = Column(String(255), nullable=True)
    image_url = Column(String(500), nullable=True)

    is_verified = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_services_state_service_type", "state", "service_type"),
        Index("ix_services_service_type_state", "service_type", "state"),
        Index("ix_services_lat_lng", "latitude", "longitude"),
    )

    def __repr__(self):
        return f"<Service {self.id} {self.name!r} type={self.service_type} state={self.state}>"

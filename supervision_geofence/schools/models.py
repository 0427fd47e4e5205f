"""SQLAlchemy models for schools (read-only reference for geofencing)."""

from sqlalchemy import Column, Integer, String, DateTime, DECIMAL, Float
from sqlalchemy.sql import func
from supervision_geofence.db import Base


class School(Base):
    """School registered location and geofence radius."""

    __tablename__ = "schools"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    latitude = Column(DECIMAL(10, 8), nullable=True)
    longitude = Column(DECIMAL(11, 8), nullable=True)
    geofence_radius_m = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

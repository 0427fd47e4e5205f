"""SQLAlchemy models for supervisor location logs."""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    DECIMAL,
    Float,
    Text,
    JSON,
    ForeignKey,
    CheckConstraint,
    Index,
)
from sqlalchemy.sql import func
from supervision_geofence.db import Base


class LocationLog(Base):
    """One supervisor check-in at a school and its classification.

    Rows are never deleted; after an override nothing is updated again.
    """

    __tablename__ = "supervision_location_logs"
    __table_args__ = (
        CheckConstraint("distance_from_school_m >= 0", name="ck_sll_distance_non_negative"),
        CheckConstraint("geofence_radius_m > 0", name="ck_sll_radius_positive"),
        CheckConstraint(
            "is_within_geofence = (distance_from_school_m <= geofence_radius_m)",
            name="ck_sll_within_matches_distance",
        ),
        CheckConstraint(
            "validation_status IN ('pending', 'validated', 'overridden')",
            name="ck_sll_status_enum",
        ),
        CheckConstraint(
            "override_decision IS NULL OR override_decision IN ('approved', 'rejected')",
            name="ck_sll_decision_enum",
        ),
        CheckConstraint(
            "(validation_status = 'overridden') = ("
            "overridden_by IS NOT NULL AND overridden_at IS NOT NULL "
            "AND override_reason IS NOT NULL AND override_decision IS NOT NULL)",
            name="ck_sll_override_fields_complete",
        ),
        CheckConstraint(
            "validation_status <> 'validated' "
            "OR (is_within_geofence = true AND is_suspicious = false)",
            name="ck_sll_validated_is_clean",
        ),
        Index("idx_sll_school_visit", "school_id", "visit_number"),
        Index("idx_sll_device", "device_id", "session_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    supervisor_id = Column(Integer, nullable=False, index=True)
    school_id = Column(
        Integer, ForeignKey("schools.id", ondelete="RESTRICT"), nullable=False
    )
    session_id = Column(Integer, nullable=False, index=True)
    visit_number = Column(Integer, nullable=False)
    recorded_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Location data
    latitude = Column(DECIMAL(12, 8), nullable=False)
    longitude = Column(DECIMAL(12, 8), nullable=False)
    accuracy_meters = Column(Float, nullable=True)
    altitude_meters = Column(Float, nullable=True)

    # Geofence validation (radius is a snapshot of the school at check-in time)
    distance_from_school_m = Column(Float, nullable=False)
    geofence_radius_m = Column(Float, nullable=False)
    is_within_geofence = Column(Boolean, nullable=False)
    validation_status = Column(String(20), nullable=False, index=True)
    validation_message = Column(String(500), nullable=True)
    is_suspicious = Column(Boolean, nullable=False, default=False)

    # Override audit trail
    overridden_by = Column(Integer, nullable=True)
    overridden_at = Column(DateTime(timezone=True), nullable=True)
    override_reason = Column(Text, nullable=True)
    override_decision = Column(String(20), nullable=True)

    # Device / client metadata, carried through as received
    device_id = Column(String(255), nullable=True)
    ip_address = Column(String(45), nullable=True)
    device_info = Column(JSON, nullable=True)
    device_shared = Column(Boolean, nullable=False, default=False)
    timestamp_client = Column(DateTime(timezone=True), nullable=True)
    time_drift_seconds = Column(Integer, nullable=True)

"""Pydantic schemas for location logs."""
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, ConfigDict, field_validator

ALERT_MARKER = "ALERT"


class ValidationStatus(str, Enum):
    """Validation status of a location log."""
    pending = "pending"
    validated = "validated"
    overridden = "overridden"


class OverrideDecision(str, Enum):
    """Admin decision recorded by an override."""
    approved = "approved"
    rejected = "rejected"


class LocationLogCreate(BaseModel):
    """Schema for a supervisor check-in."""
    supervisor_id: int = Field(..., gt=0, description="Supervisor ID")
    school_id: int = Field(..., gt=0, description="School ID")
    session_id: int = Field(..., gt=0, description="Academic session ID")
    visit_number: int = Field(..., ge=1, description="Visit number within the session")
    # Range checks happen in geo.validate_coordinate so callers get InvalidCoordinate
    latitude: float = Field(..., description="Latitude")
    longitude: float = Field(..., description="Longitude")
    accuracy_meters: Optional[float] = Field(None, ge=0, description="GPS accuracy in meters")
    altitude_meters: Optional[float] = Field(None, description="GPS altitude if available")
    timestamp_client: Optional[datetime] = Field(None, description="Client-reported timestamp")
    device_id: Optional[str] = Field(None, max_length=255)
    ip_address: Optional[str] = Field(None, max_length=45)
    device_info: Optional[Dict[str, Any]] = Field(None, description="Device model, OS, browser")


class LocationLogResponse(BaseModel):
    """Schema for location log response."""
    id: int
    supervisor_id: int
    school_id: int
    session_id: int
    visit_number: int
    recorded_at: datetime
    latitude: float
    longitude: float
    accuracy_meters: Optional[float] = None
    altitude_meters: Optional[float] = None
    distance_from_school_m: float
    geofence_radius_m: float
    is_within_geofence: bool
    validation_status: ValidationStatus
    validation_message: Optional[str] = None
    is_suspicious: bool
    device_shared: bool = False
    overridden_by: Optional[int] = None
    overridden_at: Optional[datetime] = None
    override_reason: Optional[str] = None
    override_decision: Optional[OverrideDecision] = None
    device_id: Optional[str] = None
    ip_address: Optional[str] = None
    device_info: Optional[Dict[str, Any]] = None
    timestamp_client: Optional[datetime] = None
    time_drift_seconds: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class LocationLogListResponse(BaseModel):
    """Schema for paginated location log list."""
    logs: List[LocationLogResponse]
    total: int
    page: int
    limit: int
    pages: int


class LocationLogFilter(BaseModel):
    """Filters accepted by the admin log listing and stats."""
    session_id: Optional[int] = None
    supervisor_id: Optional[int] = None
    school_id: Optional[int] = None
    status: Optional[ValidationStatus] = None
    suspicious_only: bool = False
    device_shared: bool = False


class OverrideRequest(BaseModel):
    """Schema for an admin override decision."""
    approve: bool = Field(..., description="Approve (true) or reject (false) the visit")
    reason: str = Field(..., description="Why the automatic classification is overridden")

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v):
        return v.strip()


class LocationStatsResponse(BaseModel):
    """Schema for location statistics response."""
    total_logs: int = Field(..., description="Number of location logs")
    validated_count: int
    pending_count: int
    suspicious_count: int = Field(..., description="Pending logs carrying an ALERT")
    overridden_count: int
    approved_count: int
    rejected_count: int
    unique_supervisors: int
    unique_schools: int
    unique_devices: int
    avg_distance_m: int
    shared_device_entries: int

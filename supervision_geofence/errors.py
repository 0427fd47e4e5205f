"""Domain errors surfaced to API callers.

Every error is an ``HTTPException`` so services can raise them directly and
FastAPI renders them without extra handlers. Each kind has its own class so
callers (and tests) can tell them apart without parsing messages.
"""
from typing import Optional

from fastapi import HTTPException, status


class LocationError(HTTPException):
    """Base class for geofence and override failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Location request failed"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class InvalidCoordinate(LocationError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Latitude must be within [-90, 90] and longitude within [-180, 180]"


class InvalidRadius(LocationError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "School geofence radius must be greater than zero"


class SchoolNotFound(LocationError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "School not found"


class SchoolLocationMissing(LocationError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "School does not have GPS coordinates configured"


class Unauthorized(LocationError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to override location logs"


class ReasonTooShort(LocationError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Override reason is too short"


class AlreadyOverridden(LocationError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Location log is no longer pending review"


class NotFound(LocationError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Location log not found"

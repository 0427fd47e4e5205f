"""FastAPI routes for location logs."""
import math
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from supervision_geofence.db import get_db
from supervision_geofence.auth import Actor, get_current_actor
from supervision_geofence.location_logs.service import LocationLogService
from supervision_geofence.location_logs.schemas import (
    LocationLogCreate,
    LocationLogFilter,
    LocationLogListResponse,
    LocationLogResponse,
    LocationStatsResponse,
    OverrideRequest,
    ValidationStatus,
)

router = APIRouter(prefix="/location-logs", tags=["location-logs"])


@router.post("", response_model=LocationLogResponse, status_code=201)
def create_location_log(
    payload: LocationLogCreate,
    request: Request,
    db: Session = Depends(get_db),
):
    """Record a supervisor check-in and classify it against the school geofence."""
    if payload.ip_address is None and request.client is not None:
        payload = payload.model_copy(update={"ip_address": request.client.host})
    service = LocationLogService(db)
    return service.create_log(payload)


# Put the fixed path BEFORE the parameterized one to avoid conflicts
@router.get("/stats", response_model=LocationStatsResponse)
def get_location_stats(
    session_id: Optional[int] = Query(None, description="Restrict to one session"),
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    service = LocationLogService(db)
    return service.get_stats(session_id=session_id)


@router.get("", response_model=LocationLogListResponse)
def list_location_logs(
    session_id: Optional[int] = Query(None),
    supervisor_id: Optional[int] = Query(None),
    school_id: Optional[int] = Query(None),
    status: Optional[ValidationStatus] = Query(None),
    suspicious_only: bool = Query(False, description="Only pending logs carrying an ALERT"),
    device_shared: bool = Query(False, description="Only logs from a shared device"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    """List location logs for review, newest first."""
    filters = LocationLogFilter(
        session_id=session_id,
        supervisor_id=supervisor_id,
        school_id=school_id,
        status=status,
        suspicious_only=suspicious_only,
        device_shared=device_shared,
    )
    service = LocationLogService(db)
    logs, total = service.get_logs(filters, page=page, limit=limit)
    return LocationLogListResponse(
        logs=logs, total=total, page=page, limit=limit, pages=math.ceil(total / limit)
    )


@router.get("/{log_id}", response_model=LocationLogResponse)
def get_location_log(
    log_id: int,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    service = LocationLogService(db)
    return service.get_log(log_id)


@router.post("/{log_id}/override", response_model=LocationLogResponse)
def override_location_log(
    log_id: int,
    body: OverrideRequest,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    """Approve or reject a pending log. Allowed once, for review roles only."""
    service = LocationLogService(db)
    return service.override_log(log_id, current_actor, body.approve, body.reason)

"""Business logic for supervisor location logs."""
import json
import logging
from datetime import datetime, timezone
from typing import List, Tuple, Optional, Dict, Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from supervision_geofence import metrics
from supervision_geofence.auth import Actor, has_any_role
from supervision_geofence.errors import AlreadyOverridden, NotFound, ReasonTooShort, Unauthorized
from supervision_geofence.geo import Coordinate, evaluate, validate_coordinate
from supervision_geofence.location_logs import state
from supervision_geofence.location_logs.schemas import (
    ALERT_MARKER,
    LocationLogCreate,
    LocationLogFilter,
    OverrideDecision,
    ValidationStatus,
)
from supervision_geofence.location_logs.stats import aggregate
from supervision_geofence.location_logs.suspicion import SuspicionThresholds, classify
from supervision_geofence.schools.service import SchoolDirectory
from supervision_geofence.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

LOG_COLUMNS = """
    id, supervisor_id, school_id, session_id, visit_number, recorded_at,
    latitude, longitude, accuracy_meters, altitude_meters,
    distance_from_school_m, geofence_radius_m, is_within_geofence,
    validation_status, validation_message, is_suspicious,
    overridden_by, overridden_at, override_reason, override_decision,
    device_id, ip_address, device_info, device_shared,
    timestamp_client, time_drift_seconds
"""


def _as_datetime(value):
    # SQLite hands timestamps back as text
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value


def _as_json(value):
    if isinstance(value, str):
        return json.loads(value)
    return value


def _opt_float(value):
    return float(value) if value is not None else None


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        "id": row.id,
        "supervisor_id": row.supervisor_id,
        "school_id": row.school_id,
        "session_id": row.session_id,
        "visit_number": row.visit_number,
        "recorded_at": _as_datetime(row.recorded_at),
        "latitude": float(row.latitude),
        "longitude": float(row.longitude),
        "accuracy_meters": _opt_float(row.accuracy_meters),
        "altitude_meters": _opt_float(row.altitude_meters),
        "distance_from_school_m": float(row.distance_from_school_m),
        "geofence_radius_m": float(row.geofence_radius_m),
        "is_within_geofence": bool(row.is_within_geofence),
        "validation_status": row.validation_status,
        "validation_message": row.validation_message,
        "is_suspicious": bool(row.is_suspicious),
        "overridden_by": row.overridden_by,
        "overridden_at": _as_datetime(row.overridden_at),
        "override_reason": row.override_reason,
        "override_decision": row.override_decision,
        "device_id": row.device_id,
        "ip_address": row.ip_address,
        "device_info": _as_json(row.device_info),
        "device_shared": bool(row.device_shared),
        "timestamp_client": _as_datetime(row.timestamp_client),
        "time_drift_seconds": row.time_drift_seconds,
    }


# time_drift_seconds is an INTEGER column
MAX_DRIFT_SECONDS = 2**31 - 1


def time_drift_seconds(client_ts: Optional[datetime], server_ts: datetime) -> Optional[int]:
    """Server minus client time, in whole seconds. Naive client times are UTC.

    A clock too far off to fit the column (e.g. a reset phone) yields None.
    """
    if client_ts is None:
        return None
    if client_ts.tzinfo is None:
        client_ts = client_ts.replace(tzinfo=timezone.utc)
    drift = round((server_ts - client_ts).total_seconds())
    if abs(drift) > MAX_DRIFT_SECONDS:
        return None
    return drift


class LocationLogService:
    """Service class for location log operations."""

    def __init__(
        self,
        db: Session,
        schools: Optional[SchoolDirectory] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.settings = settings or default_settings
        self.schools = schools or SchoolDirectory(
            db, default_radius_m=self.settings.default_geofence_radius_m
        )
        self.thresholds = SuspicionThresholds.from_settings(self.settings)

    # ---------- ingestion ----------

    def create_log(self, data: LocationLogCreate) -> Dict[str, Any]:
        """Evaluate a check-in against the school geofence and persist it."""
        sample = validate_coordinate(Coordinate(data.latitude, data.longitude))
        school = self.schools.get_location(data.school_id)
        evaluation = evaluate(sample, school)
        classification = classify(evaluation, data.accuracy_meters, self.thresholds)
        status = state.initial_status(classification.status)

        if status == ValidationStatus.validated:
            existing_id = self._validated_visit_log_id(data)
            if existing_id is not None:
                logger.info(
                    "Visit %s of supervisor %s at school %s already verified by log %s",
                    data.visit_number,
                    data.supervisor_id,
                    data.school_id,
                    existing_id,
                )
                return self.get_log(existing_id)

        try:
            device_shared = self._device_used_by_others(
                data.device_id, data.supervisor_id, data.session_id
            )
            result = self.db.execute(
                text(
                    """
                    INSERT INTO supervision_location_logs (
                        supervisor_id, school_id, session_id, visit_number,
                        latitude, longitude, accuracy_meters, altitude_meters,
                        distance_from_school_m, geofence_radius_m, is_within_geofence,
                        validation_status, validation_message, is_suspicious,
                        device_id, ip_address, device_info, device_shared,
                        timestamp_client, time_drift_seconds
                    ) VALUES (
                        :supervisor_id, :school_id, :session_id, :visit_number,
                        :latitude, :longitude, :accuracy_meters, :altitude_meters,
                        :distance, :radius, :is_within,
                        :status, :message, :is_suspicious,
                        :device_id, :ip_address, :device_info, :device_shared,
                        :timestamp_client, :time_drift_seconds
                    )
                    RETURNING id
                    """
                ),
                {
                    "supervisor_id": data.supervisor_id,
                    "school_id": data.school_id,
                    "session_id": data.session_id,
                    "visit_number": data.visit_number,
                    "latitude": data.latitude,
                    "longitude": data.longitude,
                    "accuracy_meters": data.accuracy_meters,
                    "altitude_meters": data.altitude_meters,
                    "distance": evaluation.distance_m,
                    "radius": evaluation.radius_m,
                    "is_within": evaluation.is_within,
                    "status": status.value,
                    "message": classification.message,
                    "is_suspicious": classification.is_suspicious,
                    "device_id": data.device_id,
                    "ip_address": data.ip_address,
                    "device_info": (
                        json.dumps(data.device_info) if data.device_info is not None else None
                    ),
                    "device_shared": device_shared,
                    "timestamp_client": (
                        data.timestamp_client.isoformat() if data.timestamp_client else None
                    ),
                    "time_drift_seconds": time_drift_seconds(
                        data.timestamp_client, datetime.now(timezone.utc)
                    ),
                },
            )
            log_id = result.fetchone().id
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(
                "Failed to store check-in for supervisor %s at school %s",
                data.supervisor_id,
                data.school_id,
            )
            raise

        metrics.CHECKINS.labels(status=status.value).inc()
        if classification.is_suspicious:
            metrics.SUSPICIOUS_CHECKINS.inc()
            logger.warning(
                "Suspicious check-in %s by supervisor %s at school %s: %s",
                log_id,
                data.supervisor_id,
                data.school_id,
                classification.message,
            )
        else:
            logger.info(
                "Check-in %s recorded as %s (%.0fm from school, radius %.0fm)",
                log_id,
                status.value,
                evaluation.distance_m,
                evaluation.radius_m,
            )

        return self.get_log(log_id)

    def _device_used_by_others(
        self, device_id: Optional[str], supervisor_id: int, session_id: int
    ) -> bool:
        """Same device already seen for another supervisor in this session."""
        if not device_id:
            return False
        row = self.db.execute(
            text(
                """
                SELECT 1 AS hit
                FROM supervision_location_logs
                WHERE device_id = :device_id
                  AND supervisor_id != :supervisor_id
                  AND session_id = :session_id
                LIMIT 1
                """
            ),
            {
                "device_id": device_id,
                "supervisor_id": supervisor_id,
                "session_id": session_id,
            },
        ).fetchone()
        return row is not None

    def _validated_visit_log_id(self, data: LocationLogCreate) -> Optional[int]:
        """Id of an earlier validated log for the same visit, if any."""
        row = self.db.execute(
            text(
                """
                SELECT id
                FROM supervision_location_logs
                WHERE supervisor_id = :supervisor_id
                  AND school_id = :school_id
                  AND session_id = :session_id
                  AND visit_number = :visit_number
                  AND validation_status = 'validated'
                ORDER BY id
                LIMIT 1
                """
            ),
            {
                "supervisor_id": data.supervisor_id,
                "school_id": data.school_id,
                "session_id": data.session_id,
                "visit_number": data.visit_number,
            },
        ).fetchone()
        return row.id if row else None

    # ---------- queries ----------

    def get_log_by_id(self, log_id: int) -> Optional[Dict[str, Any]]:
        row = self.db.execute(
            text(f"SELECT {LOG_COLUMNS} FROM supervision_location_logs WHERE id = :id"),
            {"id": log_id},
        ).fetchone()
        return _row_to_dict(row) if row else None

    def get_log(self, log_id: int) -> Dict[str, Any]:
        log = self.get_log_by_id(log_id)
        if not log:
            raise NotFound(f"Location log {log_id} not found")
        return log

    @staticmethod
    def _where(filters: LocationLogFilter) -> Tuple[str, Dict[str, Any]]:
        conditions = []
        params: Dict[str, Any] = {}

        if filters.session_id is not None:
            conditions.append("session_id = :session_id")
            params["session_id"] = filters.session_id
        if filters.supervisor_id is not None:
            conditions.append("supervisor_id = :supervisor_id")
            params["supervisor_id"] = filters.supervisor_id
        if filters.school_id is not None:
            conditions.append("school_id = :school_id")
            params["school_id"] = filters.school_id
        if filters.status is not None:
            conditions.append("validation_status = :status")
            params["status"] = ValidationStatus(filters.status).value
        if filters.suspicious_only:
            conditions.append(
                "validation_status = :pending AND validation_message LIKE :alert"
            )
            params["pending"] = ValidationStatus.pending.value
            params["alert"] = f"%{ALERT_MARKER}%"
        if filters.device_shared:
            conditions.append("device_shared = :device_shared")
            params["device_shared"] = True

        where_clause = ""
        if conditions:
            where_clause = "WHERE " + " AND ".join(conditions)
        return where_clause, params

    def get_logs(
        self,
        filters: Optional[LocationLogFilter] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Get location logs with filtering and pagination (newest first)."""
        where_clause, params = self._where(filters or LocationLogFilter())

        total_result = self.db.execute(
            text(f"SELECT COUNT(*) AS total FROM supervision_location_logs {where_clause}"),
            params,
        ).fetchone()
        total = total_result.total if total_result else 0

        params = dict(params, limit=limit, offset=(page - 1) * limit)
        rows = self.db.execute(
            text(
                f"""
                SELECT {LOG_COLUMNS}
                FROM supervision_location_logs
                {where_clause}
                ORDER BY recorded_at DESC, id DESC
                LIMIT :limit OFFSET :offset
                """
            ),
            params,
        ).fetchall()

        return [_row_to_dict(r) for r in rows], total

    def get_stats(self, session_id: Optional[int] = None) -> Dict[str, Any]:
        """Status rollup, optionally restricted to one session."""
        where_clause, params = self._where(LocationLogFilter(session_id=session_id))
        rows = self.db.execute(
            text(
                f"""
                SELECT validation_status, validation_message, override_decision,
                       supervisor_id, school_id, device_id, device_shared,
                       distance_from_school_m
                FROM supervision_location_logs
                {where_clause}
                """
            ),
            params,
        ).fetchall()
        return aggregate(rows)

    # ---------- override ----------

    def override_log(
        self, log_id: int, actor: Actor, approve: bool, reason: str
    ) -> Dict[str, Any]:
        """
        Finalize a pending log with an admin decision.

        Checks, in order: role, reason length, existence, pending status.
        The write itself is conditional on the log still being pending, so
        of two admins racing on one log only the first is recorded.
        """
        if not has_any_role(actor, self.settings.override_role_set):
            logger.warning("Override of log %s refused: actor %s lacks role", log_id, actor.id)
            raise Unauthorized()

        reason = (reason or "").strip()
        min_len = self.settings.override_min_reason_length
        if len(reason) < min_len:
            raise ReasonTooShort(f"Override reason must be at least {min_len} characters")

        log = self.get_log(log_id)
        try:
            state.ensure_transition(log["validation_status"], ValidationStatus.overridden)
        except AlreadyOverridden:
            metrics.OVERRIDE_CONFLICTS.inc()
            logger.warning(
                "Override of log %s refused: status is %s", log_id, log["validation_status"]
            )
            raise

        decision = OverrideDecision.approved if approve else OverrideDecision.rejected
        try:
            result = self.db.execute(
                text(
                    """
                    UPDATE supervision_location_logs
                       SET validation_status = :overridden,
                           override_decision = :decision,
                           overridden_by = :actor_id,
                           overridden_at = CURRENT_TIMESTAMP,
                           override_reason = :reason
                     WHERE id = :id
                       AND validation_status = :pending
                    """
                ),
                {
                    "overridden": ValidationStatus.overridden.value,
                    "decision": decision.value,
                    "actor_id": actor.id,
                    "reason": reason,
                    "id": log_id,
                    "pending": ValidationStatus.pending.value,
                },
            )
            if result.rowcount != 1:
                self.db.rollback()
                metrics.OVERRIDE_CONFLICTS.inc()
                logger.warning("Override of log %s lost a race with another admin", log_id)
                raise AlreadyOverridden(f"Location log {log_id} was already overridden")
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to store override of log %s", log_id)
            raise

        metrics.OVERRIDES.labels(decision=decision.value).inc()
        logger.info(
            "Log %s overridden (%s) by actor %s", log_id, decision.value, actor.id
        )
        return self.get_log(log_id)

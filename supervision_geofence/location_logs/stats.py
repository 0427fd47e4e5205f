"""Read-only rollup over a set of location logs."""
from typing import Any, Dict, Iterable, Mapping, Union

from supervision_geofence.location_logs.schemas import (
    ALERT_MARKER,
    OverrideDecision,
    ValidationStatus,
)


def _get(log: Union[Mapping, Any], name: str):
    if isinstance(log, Mapping):
        return log.get(name)
    return getattr(log, name, None)


def _value(v):
    return v.value if hasattr(v, "value") else v


def aggregate(logs: Iterable[Union[Mapping, Any]]) -> Dict[str, Any]:
    """
    Count logs by status.

    ``suspicious_count`` follows the review tooling: pending logs whose
    message contains "ALERT". Accepts dicts, rows or model instances.
    """
    counts = {
        "total_logs": 0,
        "validated_count": 0,
        "pending_count": 0,
        "suspicious_count": 0,
        "overridden_count": 0,
        "approved_count": 0,
        "rejected_count": 0,
        "shared_device_entries": 0,
    }
    supervisors, schools, devices = set(), set(), set()
    distance_sum = 0.0
    distance_n = 0

    for log in logs:
        counts["total_logs"] += 1
        status = _value(_get(log, "validation_status"))
        message = _get(log, "validation_message") or ""

        if status == ValidationStatus.validated.value:
            counts["validated_count"] += 1
        elif status == ValidationStatus.pending.value:
            counts["pending_count"] += 1
            if ALERT_MARKER in message:
                counts["suspicious_count"] += 1
        elif status == ValidationStatus.overridden.value:
            counts["overridden_count"] += 1
            decision = _value(_get(log, "override_decision"))
            if decision == OverrideDecision.approved.value:
                counts["approved_count"] += 1
            elif decision == OverrideDecision.rejected.value:
                counts["rejected_count"] += 1

        if _get(log, "device_shared"):
            counts["shared_device_entries"] += 1

        for bucket, key in (
            (supervisors, "supervisor_id"),
            (schools, "school_id"),
            (devices, "device_id"),
        ):
            value = _get(log, key)
            if value is not None:
                bucket.add(value)

        distance = _get(log, "distance_from_school_m")
        if distance is not None:
            distance_sum += float(distance)
            distance_n += 1

    counts["unique_supervisors"] = len(supervisors)
    counts["unique_schools"] = len(schools)
    counts["unique_devices"] = len(devices)
    counts["avg_distance_m"] = round(distance_sum / distance_n) if distance_n else 0
    return counts

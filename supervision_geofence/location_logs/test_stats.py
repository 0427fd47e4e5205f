"""Unit tests for the location log rollup."""
from types import SimpleNamespace

from supervision_geofence.location_logs.schemas import LocationStatsResponse, ValidationStatus
from supervision_geofence.location_logs.stats import aggregate

LOGS = [
    {"validation_status": "validated", "validation_message": None, "supervisor_id": 1,
     "school_id": 1, "device_id": "d1", "distance_from_school_m": 50},
    {"validation_status": "validated", "validation_message": None, "supervisor_id": 2,
     "school_id": 1, "device_id": "d2", "distance_from_school_m": 70},
    {"validation_status": "pending", "validation_message": "Outside geofence by 40 m",
     "supervisor_id": 1, "school_id": 2, "device_id": "d1", "distance_from_school_m": 190},
    {"validation_status": "pending", "validation_message": "ALERT: far outside geofence",
     "supervisor_id": 3, "school_id": 2, "device_id": "d1", "device_shared": True,
     "distance_from_school_m": 1900},
    {"validation_status": "pending", "validation_message": "ALERT: GPS accuracy too coarse",
     "supervisor_id": 3, "school_id": 3, "device_id": None, "distance_from_school_m": 30},
    {"validation_status": "overridden", "override_decision": "approved",
     "validation_message": "ALERT: far outside geofence", "supervisor_id": 4,
     "school_id": 3, "device_id": "d4", "distance_from_school_m": 600},
    {"validation_status": "overridden", "override_decision": "rejected",
     "validation_message": "Outside geofence by 10 m", "supervisor_id": 4,
     "school_id": 3, "device_id": "d4", "distance_from_school_m": 160},
]


class TestAggregate:

    def test_counts_match_manual_tally(self):
        stats = aggregate(LOGS)
        assert stats["total_logs"] == 7
        assert stats["validated_count"] == 2
        assert stats["pending_count"] == 3
        assert stats["suspicious_count"] == 2  # overridden ALERT logs are not counted
        assert stats["overridden_count"] == 2
        assert stats["approved_count"] == 1
        assert stats["rejected_count"] == 1
        assert stats["unique_supervisors"] == 4
        assert stats["unique_schools"] == 3
        assert stats["unique_devices"] == 3
        assert stats["shared_device_entries"] == 1
        assert stats["avg_distance_m"] == round((50 + 70 + 190 + 1900 + 30 + 600 + 160) / 7)

    def test_empty(self):
        stats = aggregate([])
        assert stats["total_logs"] == 0
        assert stats["avg_distance_m"] == 0

    def test_accepts_objects_and_enums(self):
        rows = [
            SimpleNamespace(validation_status=ValidationStatus.pending,
                            validation_message="ALERT: weak signal", override_decision=None,
                            supervisor_id=1, school_id=1, device_id=None,
                            device_shared=0, distance_from_school_m=12.5),
        ]
        stats = aggregate(rows)
        assert stats["pending_count"] == 1
        assert stats["suspicious_count"] == 1

    def test_fits_response_schema(self):
        LocationStatsResponse(**aggregate(LOGS))

    def test_does_not_mutate_input(self):
        before = [dict(log) for log in LOGS]
        aggregate(LOGS)
        assert LOGS == before

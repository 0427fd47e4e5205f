"""Classification of a geofence evaluation into validated / pending (+ ALERT).

Review tooling finds suspicious logs by searching ``validation_message`` for
the literal ``"ALERT"``; keep that marker in every escalated message.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from supervision_geofence.geo import GeofenceEvaluation
from supervision_geofence.location_logs.schemas import ALERT_MARKER, ValidationStatus
from supervision_geofence.settings import Settings, settings as default_settings


@dataclass(frozen=True)
class SuspicionThresholds:
    """Tunable heuristics; defaults mirror the shipped settings."""

    far_outside_multiplier: float = 3.0
    small_radius_m: float = 50.0
    flag_imprecise_accuracy: bool = True
    flag_weak_signal: bool = True

    @classmethod
    def from_settings(cls, s: Optional[Settings] = None) -> "SuspicionThresholds":
        s = s or default_settings
        return cls(
            far_outside_multiplier=s.suspicion_far_outside_multiplier,
            small_radius_m=s.suspicion_small_radius_m,
            flag_imprecise_accuracy=s.suspicion_flag_imprecise_accuracy,
            flag_weak_signal=s.suspicion_flag_weak_signal,
        )


@dataclass(frozen=True)
class Classification:
    status: ValidationStatus
    message: Optional[str]
    is_suspicious: bool = False
    reasons: List[str] = field(default_factory=list)


def is_alert_message(message: Optional[str]) -> bool:
    return bool(message) and ALERT_MARKER in message


def alert_reasons(
    evaluation: GeofenceEvaluation,
    accuracy_m: Optional[float],
    thresholds: SuspicionThresholds,
) -> List[str]:
    """Return every heuristic that fired, in a stable order."""
    reasons = []
    radius = evaluation.radius_m

    if evaluation.distance_m > thresholds.far_outside_multiplier * radius:
        reasons.append(
            f"far outside geofence ({evaluation.distance_m:.0f}m from school, "
            f"more than {thresholds.far_outside_multiplier:g}x the {radius:.0f}m radius)"
        )

    if thresholds.flag_imprecise_accuracy and accuracy_m is not None and accuracy_m > radius:
        reasons.append(
            f"GPS accuracy {accuracy_m:.0f}m is coarser than the {radius:.0f}m geofence"
        )

    if (
        thresholds.flag_weak_signal
        and evaluation.is_within
        and not accuracy_m
        and radius <= thresholds.small_radius_m
    ):
        reasons.append(
            f"no GPS accuracy reported for a small {radius:.0f}m geofence"
        )

    return reasons


def classify(
    evaluation: GeofenceEvaluation,
    accuracy_m: Optional[float],
    thresholds: Optional[SuspicionThresholds] = None,
) -> Classification:
    """
    Decide the initial status and message for a check-in.

    - any heuristic fires   -> pending, "ALERT: ..." message
    - inside the geofence   -> validated, no message
    - outside the geofence  -> pending, "Outside geofence by N m"
    """
    thresholds = thresholds or SuspicionThresholds.from_settings()
    reasons = alert_reasons(evaluation, accuracy_m, thresholds)

    outside_note = None
    if not evaluation.is_within:
        overshoot = evaluation.distance_m - evaluation.radius_m
        outside_note = f"Outside geofence by {overshoot:.0f} m"

    if reasons:
        message = f"{ALERT_MARKER}: " + "; ".join(reasons)
        if outside_note:
            message = f"{message}. {outside_note}"
        return Classification(
            status=ValidationStatus.pending,
            message=message,
            is_suspicious=True,
            reasons=reasons,
        )

    if evaluation.is_within:
        return Classification(status=ValidationStatus.validated, message=None)

    return Classification(status=ValidationStatus.pending, message=outside_note)

"""Legal validation status transitions for a location log.

    pending ──override──> overridden
    validated  (terminal)
    overridden (terminal)
"""
from typing import Dict, FrozenSet

from supervision_geofence.errors import AlreadyOverridden
from supervision_geofence.location_logs.schemas import ValidationStatus

INITIAL_STATES: FrozenSet[ValidationStatus] = frozenset(
    {ValidationStatus.pending, ValidationStatus.validated}
)

TRANSITIONS: Dict[ValidationStatus, FrozenSet[ValidationStatus]] = {
    ValidationStatus.pending: frozenset({ValidationStatus.overridden}),
    ValidationStatus.validated: frozenset(),
    ValidationStatus.overridden: frozenset(),
}


def initial_status(status: ValidationStatus) -> ValidationStatus:
    """Guard the status a new log is created with."""
    status = ValidationStatus(status)
    if status not in INITIAL_STATES:
        raise ValueError(f"A location log cannot be created as '{status.value}'")
    return status


def is_terminal(status: ValidationStatus) -> bool:
    return not TRANSITIONS[ValidationStatus(status)]


def can_transition(current: ValidationStatus, target: ValidationStatus) -> bool:
    return ValidationStatus(target) in TRANSITIONS[ValidationStatus(current)]


def ensure_transition(current: ValidationStatus, target: ValidationStatus) -> None:
    """Raise AlreadyOverridden when ``current`` cannot move to ``target``."""
    current = ValidationStatus(current)
    if not can_transition(current, target):
        raise AlreadyOverridden(
            f"Location log is '{current.value}' and can no longer be "
            f"moved to '{ValidationStatus(target).value}'"
        )

from fastapi import APIRouter
from starlette.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST, Counter

router = APIRouter()

CHECKINS = Counter("location_checkins_total", "Location check-ins recorded", ["status"])
SUSPICIOUS_CHECKINS = Counter(
    "location_checkins_suspicious_total", "Check-ins flagged with an ALERT"
)
OVERRIDES = Counter("location_overrides_total", "Overrides applied", ["decision"])
OVERRIDE_CONFLICTS = Counter(
    "location_override_conflicts_total", "Overrides refused because the log was not pending"
)


@router.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

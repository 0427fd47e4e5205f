"""Geospatial utilities: great-circle distance and school geofence containment."""
import math
from dataclasses import dataclass

from supervision_geofence.errors import InvalidCoordinate, InvalidRadius

EARTH_RADIUS_M = 6371000.0  # mean Earth radius


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float


@dataclass(frozen=True)
class SchoolLocation:
    """Registered position and geofence radius of a school (read-only snapshot)."""

    latitude: float
    longitude: float
    geofence_radius_m: float

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)


@dataclass(frozen=True)
class GeofenceEvaluation:
    """Outcome of checking one sample against one school geofence."""

    distance_m: float
    radius_m: float
    is_within: bool


def validate_coordinate(point: Coordinate) -> Coordinate:
    """Raise InvalidCoordinate for out-of-range or non-finite values (never clamps)."""
    try:
        lat = float(point.latitude)
        lon = float(point.longitude)
    except (TypeError, ValueError):
        raise InvalidCoordinate(f"Invalid coordinate: {point!r}")

    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise InvalidCoordinate(f"Invalid coordinate: {point!r}")
    if not -90.0 <= lat <= 90.0:
        raise InvalidCoordinate(f"Latitude {lat} is outside [-90, 90]")
    if not -180.0 <= lon <= 180.0:
        raise InvalidCoordinate(f"Longitude {lon} is outside [-180, 180]")
    return point


def distance(a: Coordinate, b: Coordinate) -> float:
    """
    Haversine distance in meters between two coordinates.

    Symmetric, and zero for identical points.
    """
    validate_coordinate(a)
    validate_coordinate(b)

    lat1 = math.radians(float(a.latitude))
    lat2 = math.radians(float(b.latitude))
    dlat = lat2 - lat1
    dlon = math.radians(float(b.longitude) - float(a.longitude))

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    # rounding can push h a hair above 1 for antipodal points
    h = min(1.0, h)
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def evaluate(sample: Coordinate, school: SchoolLocation) -> GeofenceEvaluation:
    """
    Check a sample against a school's circular geofence.

    The boundary is inclusive: a sample exactly ``geofence_radius_m`` away is within.
    """
    radius = float(school.geofence_radius_m)
    if not math.isfinite(radius) or radius <= 0:
        raise InvalidRadius(f"Geofence radius must be > 0, got {school.geofence_radius_m}")

    distance_m = distance(sample, school.coordinate)
    return GeofenceEvaluation(
        distance_m=distance_m,
        radius_m=radius,
        is_within=distance_m <= radius,
    )

"""Read-only school directory consumed by location check-ins."""
from typing import Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from supervision_geofence.errors import InvalidRadius, SchoolLocationMissing, SchoolNotFound
from supervision_geofence.geo import SchoolLocation
from supervision_geofence.settings import settings


class SchoolDirectory:
    """Looks up a school's registered location."""

    def __init__(self, db: Session, default_radius_m: Optional[float] = None):
        self.db = db
        self.default_radius_m = default_radius_m or settings.default_geofence_radius_m

    def get_location(self, school_id: int) -> SchoolLocation:
        """
        Return the school's coordinates and geofence radius.

        A missing radius falls back to the configured default; an explicit
        radius of zero or less is a data problem and is reported as such.
        """
        row = self.db.execute(
            text(
                """
                SELECT id, name, latitude, longitude, geofence_radius_m
                FROM schools
                WHERE id = :id
                """
            ),
            {"id": school_id},
        ).fetchone()

        if not row:
            raise SchoolNotFound(f"School {school_id} not found")

        if row.latitude is None or row.longitude is None:
            raise SchoolLocationMissing(
                f'School "{row.name}" does not have GPS coordinates configured'
            )

        radius = row.geofence_radius_m
        if radius is None:
            radius = self.default_radius_m
        elif float(radius) <= 0:
            raise InvalidRadius(
                f'School "{row.name}" has an invalid geofence radius ({radius})'
            )

        return SchoolLocation(
            latitude=float(row.latitude),
            longitude=float(row.longitude),
            geofence_radius_m=float(radius),
        )

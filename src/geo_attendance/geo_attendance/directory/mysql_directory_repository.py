from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.enums import TrackingEvent
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, to_db_datetime
from ..geo.model import Coordinate, GeofenceSpec
from .model import Person
from .repository import BranchDirectory, PersonDirectory


class MySQLPersonDirectory(PersonDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, person_id: int) -> Optional[Person]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT person_id, full_name, branch_id, is_active FROM staff WHERE person_id=%s",
                (int(person_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Person(
                person_id=int(r["person_id"]),
                full_name=r["full_name"],
                branch_id=int(r["branch_id"]) if r.get("branch_id") is not None else None,
                is_active=bool(r.get("is_active", 1)),
            )

    def update_last_known_location(
        self, person_id: int, position: Coordinate, *, at: datetime, event: TrackingEvent
    ) -> None:
        stamp_column = {
            TrackingEvent.CHECK_IN: "last_check_in",
            TrackingEvent.CHECK_OUT: "last_check_out",
        }.get(event)
        extra = f", {stamp_column}=%s" if stamp_column else ""
        params: list[object] = [position.latitude, position.longitude, position.accuracy, to_db_datetime(at)]
        if stamp_column:
            params.append(to_db_datetime(at))
        params.append(int(person_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE staff
                SET last_known_lat=%s, last_known_lon=%s, last_known_accuracy=%s, last_known_at=%s{extra}
                WHERE person_id=%s
                """,
                tuple(params),
            )


class MySQLBranchDirectory(BranchDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_geofence(self, branch_id: int) -> Optional[GeofenceSpec]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT name, geofence_lat, geofence_lon, geofence_radius
                FROM branches
                WHERE branch_id=%s AND is_active=1
                """,
                (int(branch_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return GeofenceSpec(
                center=Coordinate(latitude=float(r["geofence_lat"]), longitude=float(r["geofence_lon"])),
                radius_meters=float(r["geofence_radius"]),
                label=r["name"],
            )

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus, GeofenceSourceKind
from ..core.exceptions import ConflictError, NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    from_db_datetime,
    in_clause,
    is_duplicate_key,
    to_db_datetime,
)
from ..devices.model import DeviceInfo
from ..geo.model import Coordinate, CustomPremise, GeofenceSource, GeofenceSpec
from .model import AttendanceRecord, CheckEvent, LocationSample
from .repository import AttendanceRepository
from .tracking import place_after

_EVENT_FIELDS = (
    "time", "lat", "lon", "accuracy", "within", "distance", "radius",
    "label", "device_id", "browser", "os", "notes",
)


def _event_columns(prefix: str) -> List[str]:
    return [f"{prefix}_{name}" for name in _EVENT_FIELDS]


def _event_params(event: Optional[CheckEvent]) -> List[Any]:
    if event is None:
        return [None] * len(_EVENT_FIELDS)
    device = event.device_info
    return [
        to_db_datetime(event.time),
        event.location.latitude,
        event.location.longitude,
        event.location.accuracy,
        int(event.is_within_geofence),
        event.distance_meters,
        event.radius_meters,
        event.location_label,
        device.device_id if device else None,
        device.browser if device else None,
        device.os if device else None,
        event.notes,
    ]


def _event_from_row(r: Dict[str, Any], prefix: str) -> Optional[CheckEvent]:
    if r.get(f"{prefix}_time") is None:
        return None
    device_id = r.get(f"{prefix}_device_id")
    return CheckEvent(
        time=from_db_datetime(r[f"{prefix}_time"]),
        location=Coordinate(
            latitude=float(r[f"{prefix}_lat"]),
            longitude=float(r[f"{prefix}_lon"]),
            accuracy=r.get(f"{prefix}_accuracy"),
        ),
        is_within_geofence=bool(r[f"{prefix}_within"]),
        distance_meters=float(r[f"{prefix}_distance"]),
        radius_meters=float(r[f"{prefix}_radius"]),
        location_label=r.get(f"{prefix}_label"),
        device_info=DeviceInfo(
            device_id=device_id,
            browser=r.get(f"{prefix}_browser"),
            os=r.get(f"{prefix}_os"),
        ) if device_id else None,
        notes=r.get(f"{prefix}_notes"),
    )


def _geofence_params(source: Optional[GeofenceSource]) -> List[Any]:
    if source is None:
        return [None] * 5
    spec = source.spec
    return [source.kind.value, spec.center.latitude, spec.center.longitude, spec.radius_meters, spec.label]


def _geofence_from_row(r: Dict[str, Any]) -> Optional[GeofenceSource]:
    if r.get("geofence_source") is None:
        return None
    return GeofenceSource(
        kind=GeofenceSourceKind(r["geofence_source"]),
        spec=GeofenceSpec(
            center=Coordinate(latitude=float(r["geofence_lat"]), longitude=float(r["geofence_lon"])),
            radius_meters=float(r["geofence_radius"]),
            label=r.get("geofence_label") or "",
        ),
    )


def _premise_params(premise: Optional[CustomPremise]) -> List[Any]:
    if premise is None:
        return [None] * 4
    return [premise.label, premise.latitude, premise.longitude, premise.radius_meters]


def _premise_from_row(r: Dict[str, Any]) -> Optional[CustomPremise]:
    if not r.get("custom_premise_used"):
        return None
    return CustomPremise(
        label=r.get("custom_premise_name"),
        latitude=r.get("custom_premise_lat"),
        longitude=r.get("custom_premise_lon"),
        radius_meters=r.get("custom_premise_radius"),
    )


_WRITE_COLUMNS = (
    ["branch_id", "status"]
    + _event_columns("check_in")
    + ["geofence_source", "geofence_lat", "geofence_lon", "geofence_radius", "geofence_label"]
    + ["custom_premise_used", "custom_premise_name", "custom_premise_lat", "custom_premise_lon", "custom_premise_radius"]
)


def _checkin_params(record: AttendanceRecord) -> List[Any]:
    return (
        [record.branch_id, record.status.value]
        + _event_params(record.check_in)
        + _geofence_params(record.geofence)
        + [int(record.custom_premise_used)]
        + _premise_params(record.custom_premise)
    )


class MySQLAttendanceRepository(AttendanceRepository):
    """MySQL-backed store.

    Uniqueness of (person_id, work_date) is enforced by ``uq_attendance_person_day``;
    trail appends lock the parent row with SELECT ... FOR UPDATE.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_person_and_date(self, person_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM attendance_records WHERE person_id=%s AND work_date=%s",
                (int(person_id), work_date),
            )
            rows = fetchall(cur)
            records = self._hydrate(cur, rows)
            return records[0] if records else None

    def list_for_person(self, person_id, *, start_date=None, end_date=None) -> Sequence[AttendanceRecord]:
        return self._list("person_id", int(person_id), start_date, end_date)

    def list_for_branch(self, branch_id, *, start_date=None, end_date=None) -> Sequence[AttendanceRecord]:
        return self._list("branch_id", int(branch_id), start_date, end_date)

    def create_placeholder(
        self, *, person_id: int, branch_id: int, work_date: date, status: AttendanceStatus
    ) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO attendance_records(person_id, work_date, branch_id, status, version)
                    VALUES(%s,%s,%s,%s,1)
                    """,
                    (int(person_id), work_date, int(branch_id), status.value),
                )
            except mysql.connector.IntegrityError as exc:
                if is_duplicate_key(exc):
                    raise ConflictError("Attendance record already exists for this day") from exc
                raise
            return self._load(cur, int(cur.lastrowid))

    def create_checkin(self, record: AttendanceRecord) -> AttendanceRecord:
        columns = ["person_id", "work_date"] + _WRITE_COLUMNS + ["version"]
        params = [int(record.person_id), record.work_date] + _checkin_params(record) + [1]
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    f"INSERT INTO attendance_records({', '.join(columns)}) VALUES({in_clause(params)})",
                    tuple(params),
                )
            except mysql.connector.IntegrityError as exc:
                if is_duplicate_key(exc):
                    raise ConflictError("Attendance record already exists for this day") from exc
                raise
            attendance_id = int(cur.lastrowid)
            for seq, sample in enumerate(record.location_tracking, start=1):
                self._insert_sample(cur, attendance_id, seq, sample)
            return self._load(cur, attendance_id)

    def fill_checkin(self, record: AttendanceRecord, *, expected_version: int) -> Optional[AttendanceRecord]:
        assignments = ", ".join(f"{c}=%s" for c in _WRITE_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance_records
                SET {assignments}, version=version+1
                WHERE attendance_id=%s AND version=%s AND check_in_time IS NULL
                """,
                tuple(_checkin_params(record) + [int(record.attendance_id), int(expected_version)]),
            )
            if cur.rowcount == 0:
                return None
            last_seq = self._last_seq(cur, record.attendance_id)
            self._insert_sample(cur, record.attendance_id, last_seq + 1, record.location_tracking[-1])
            return self._load(cur, record.attendance_id)

    def save_checkout(
        self, record: AttendanceRecord, sample: LocationSample, *, expected_version: int
    ) -> Optional[AttendanceRecord]:
        columns = _event_columns("check_out")
        assignments = ", ".join(f"{c}=%s" for c in columns)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT version, check_out_time FROM attendance_records
                WHERE attendance_id=%s FOR UPDATE
                """,
                (int(record.attendance_id),),
            )
            row = fetchone(cur)
            if not row:
                raise NotFoundError(f"Attendance record {record.attendance_id} not found")
            if int(row["version"]) != int(expected_version) or row.get("check_out_time") is not None:
                return None

            sample = self._place(cur, record.attendance_id, sample)
            cur.execute(
                f"""
                UPDATE attendance_records
                SET {assignments}, status=%s, total_hours=%s, version=version+1
                WHERE attendance_id=%s
                """,
                tuple(
                    _event_params(record.check_out)
                    + [record.status.value, record.total_hours, int(record.attendance_id)]
                ),
            )
            self._insert_sample(cur, record.attendance_id, self._last_seq(cur, record.attendance_id) + 1, sample)
            return self._load(cur, record.attendance_id)

    def append_location_sample(self, attendance_id: int, sample: LocationSample) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT attendance_id FROM attendance_records WHERE attendance_id=%s FOR UPDATE",
                (int(attendance_id),),
            )
            if not fetchone(cur):
                raise NotFoundError(f"Attendance record {attendance_id} not found")
            sample = self._place(cur, attendance_id, sample)
            self._insert_sample(cur, attendance_id, self._last_seq(cur, attendance_id) + 1, sample)

    def _list(self, column: str, value: int, start_date: Optional[date], end_date: Optional[date]):
        clauses = [f"{column}=%s"]
        params: list[object] = [value]
        if start_date is not None:
            clauses.append("work_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("work_date <= %s")
            params.append(end_date)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT * FROM attendance_records
                WHERE {' AND '.join(clauses)}
                ORDER BY work_date DESC, person_id DESC
                """,
                tuple(params),
            )
            return self._hydrate(cur, fetchall(cur))

    def _load(self, cur, attendance_id: int) -> AttendanceRecord:
        cur.execute("SELECT * FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
        records = self._hydrate(cur, fetchall(cur))
        if not records:
            raise NotFoundError(f"Attendance record {attendance_id} not found")
        return records[0]

    def _hydrate(self, cur, rows: List[Dict[str, Any]]) -> List[AttendanceRecord]:
        if not rows:
            return []
        ids = [int(r["attendance_id"]) for r in rows]
        cur.execute(
            f"""
            SELECT attendance_id, recorded_at, latitude, longitude, accuracy, is_within, distance
            FROM attendance_location_samples
            WHERE attendance_id IN ({in_clause(ids)})
            ORDER BY attendance_id, seq
            """,
            tuple(ids),
        )
        trails: Dict[int, List[LocationSample]] = {i: [] for i in ids}
        for s in fetchall(cur):
            trails[int(s["attendance_id"])].append(
                LocationSample(
                    timestamp=from_db_datetime(s["recorded_at"]),
                    position=Coordinate(
                        latitude=float(s["latitude"]), longitude=float(s["longitude"]), accuracy=s.get("accuracy")
                    ),
                    is_within_geofence=bool(s["is_within"]),
                    distance_meters=float(s["distance"]),
                )
            )

        return [
            AttendanceRecord(
                attendance_id=int(r["attendance_id"]),
                person_id=int(r["person_id"]),
                work_date=r["work_date"],
                branch_id=int(r["branch_id"]),
                status=AttendanceStatus(r["status"]),
                check_in=_event_from_row(r, "check_in"),
                check_out=_event_from_row(r, "check_out"),
                total_hours=Decimal(r["total_hours"]) if r.get("total_hours") is not None else None,
                geofence=_geofence_from_row(r),
                custom_premise_used=bool(r.get("custom_premise_used")),
                custom_premise=_premise_from_row(r),
                location_tracking=tuple(trails[int(r["attendance_id"])]),
                version=int(r["version"]),
            )
            for r in rows
        ]

    def _last_seq(self, cur, attendance_id: int) -> int:
        cur.execute(
            "SELECT COALESCE(MAX(seq), 0) AS last_seq FROM attendance_location_samples WHERE attendance_id=%s",
            (int(attendance_id),),
        )
        return int(fetchone(cur)["last_seq"])

    def _place(self, cur, attendance_id: int, sample: LocationSample) -> LocationSample:
        # Caller holds the parent row lock, so the tail read here is the one appended behind.
        cur.execute(
            """
            SELECT recorded_at FROM attendance_location_samples
            WHERE attendance_id=%s ORDER BY seq DESC LIMIT 1
            """,
            (int(attendance_id),),
        )
        last = fetchone(cur)
        return place_after(from_db_datetime(last["recorded_at"]) if last else None, sample)

    @staticmethod
    def _insert_sample(cur, attendance_id: int, seq: int, sample: LocationSample) -> None:
        cur.execute(
            """
            INSERT INTO attendance_location_samples
                (attendance_id, seq, recorded_at, latitude, longitude, accuracy, is_within, distance)
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                int(attendance_id),
                int(seq),
                to_db_datetime(sample.timestamp),
                sample.position.latitude,
                sample.position.longitude,
                sample.position.accuracy,
                int(sample.is_within_geofence),
                sample.distance_meters,
            ),
        )

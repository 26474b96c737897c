from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from src.geo_attendance.geo_attendance.attendance.model import AttendanceRecord, CheckEvent, LocationSample
from src.geo_attendance.geo_attendance.attendance.mysql_attendance_repository import (
    MySQLAttendanceRepository,
    _WRITE_COLUMNS,
    _checkin_params,
    _event_columns,
    _event_from_row,
    _event_params,
)
from src.geo_attendance.geo_attendance.core.enums import AttendanceStatus, GeofenceSourceKind
from src.geo_attendance.geo_attendance.devices.model import DeviceInfo
from src.geo_attendance.geo_attendance.geo.model import Coordinate, CustomPremise, GeofenceSource

DAY = date(2026, 2, 2)
PREMISE = CustomPremise(label="Client site", latitude=28.70, longitude=77.10, radius_meters=100.0)


def _at(hour, minute=0):
    return datetime(2026, 2, 2, hour, minute, tzinfo=timezone.utc)


def _event(hour, **overrides):
    fields = dict(
        time=_at(hour),
        location=Coordinate(28.7001, 77.1001, accuracy=8.0),
        is_within_geofence=True,
        distance_meters=15.2,
        radius_meters=100.0,
        location_label="Client site",
        device_info=DeviceInfo(device_id="phone-1", browser="Firefox", os="Android"),
        notes="on site",
    )
    fields.update(overrides)
    return CheckEvent(**fields)


def _record():
    return AttendanceRecord(
        attendance_id=11,
        person_id=1,
        work_date=DAY,
        branch_id=3,
        status=AttendanceStatus.PRESENT,
        check_in=_event(9),
        geofence=GeofenceSource(kind=GeofenceSourceKind.OVERRIDE, spec=PREMISE.to_spec()),
        custom_premise_used=True,
        custom_premise=PREMISE,
        version=1,
    )


def _stored_row(record):
    row = dict(zip(_WRITE_COLUMNS, _checkin_params(record)))
    row.update(dict.fromkeys(_event_columns("check_out")))
    row.update(
        attendance_id=record.attendance_id,
        person_id=record.person_id,
        work_date=record.work_date,
        total_hours=None,
        version=record.version,
    )
    return row


def test_event_columns_round_trip():
    event = _event(17, device_info=None, notes=None)

    row = dict(zip(_event_columns("check_out"), _event_params(event)))

    assert row["check_out_time"].tzinfo is None
    assert _event_from_row(row, "check_out") == event


def test_missing_event_reads_back_as_none():
    row = dict(zip(_event_columns("check_out"), _event_params(None)))

    assert _event_from_row(row, "check_out") is None


def test_record_round_trips_through_stored_columns(fake_db):
    record = _record()
    sample = {
        "attendance_id": 11,
        "recorded_at": datetime(2026, 2, 2, 9, 0),
        "latitude": 28.7001,
        "longitude": 77.1001,
        "accuracy": 8.0,
        "is_within": 1,
        "distance": 15.2,
    }
    fake_db.results = [[_stored_row(record)], [sample]]

    loaded = MySQLAttendanceRepository(fake_db).get_for_person_and_date(1, DAY)

    expected_sample = LocationSample(
        timestamp=_at(9),
        position=Coordinate(28.7001, 77.1001, accuracy=8.0),
        is_within_geofence=True,
        distance_meters=15.2,
    )
    assert loaded.check_in == record.check_in
    assert loaded.check_out is None
    assert loaded.geofence == record.geofence
    assert loaded.custom_premise == PREMISE
    assert loaded.custom_premise_used
    assert loaded.location_tracking == (expected_sample,)
    assert fake_db.commits == 1


def test_completed_record_reads_hours_as_decimal(fake_db):
    record = _record()
    row = _stored_row(record)
    row.update(dict(zip(_event_columns("check_out"), _event_params(_event(17, is_within_geofence=False)))))
    row["total_hours"] = Decimal("8.00")
    fake_db.results = [[row], []]

    loaded = MySQLAttendanceRepository(fake_db).get_for_person_and_date(1, DAY)

    assert loaded.total_hours == Decimal("8.00")
    assert loaded.check_out.is_within_geofence is False
    assert loaded.is_checked_out

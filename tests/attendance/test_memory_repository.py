from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from src.geo_attendance.geo_attendance.attendance.memory_repository import InMemoryAttendanceRepository
from src.geo_attendance.geo_attendance.attendance.model import AttendanceRecord, CheckEvent, LocationSample
from src.geo_attendance.geo_attendance.core.enums import AttendanceStatus
from src.geo_attendance.geo_attendance.core.exceptions import ConflictError, NotFoundError
from src.geo_attendance.geo_attendance.geo.model import Coordinate

DAY = date(2026, 2, 2)
HERE = Coordinate(28.6139, 77.2090)


def _at(hour):
    return datetime(2026, 2, 2, hour, tzinfo=timezone.utc)


def _sample(hour, within=True):
    return LocationSample(timestamp=_at(hour), position=HERE, is_within_geofence=within, distance_meters=0.0)


def _event(hour):
    return CheckEvent(time=_at(hour), location=HERE, is_within_geofence=True, distance_meters=0.0, radius_meters=250)


def _checked_in(person_id=1, work_date=DAY):
    return AttendanceRecord(
        attendance_id=0,
        person_id=person_id,
        work_date=work_date,
        branch_id=1,
        status=AttendanceStatus.PRESENT,
        check_in=_event(9),
        location_tracking=(_sample(9),),
    )


def test_create_assigns_id_and_version():
    repo = InMemoryAttendanceRepository()

    stored = repo.create_checkin(_checked_in())

    assert stored.attendance_id == 1
    assert stored.version == 1
    assert repo.get_for_person_and_date(1, DAY) == stored


def test_second_record_for_same_day_conflicts():
    repo = InMemoryAttendanceRepository()
    repo.create_checkin(_checked_in())

    with pytest.raises(ConflictError):
        repo.create_checkin(_checked_in())


def test_fill_checkin_only_applies_to_unchanged_placeholder():
    repo = InMemoryAttendanceRepository()
    placeholder = repo.create_placeholder(person_id=1, branch_id=1, work_date=DAY, status=AttendanceStatus.ABSENT)
    filled = replace(_checked_in(), attendance_id=placeholder.attendance_id)

    stored = repo.fill_checkin(filled, expected_version=placeholder.version)

    assert stored.version == placeholder.version + 1
    assert stored.is_checked_in
    assert repo.fill_checkin(filled, expected_version=stored.version) is None


def test_save_checkout_is_compare_and_swap():
    repo = InMemoryAttendanceRepository()
    stored = repo.create_checkin(_checked_in())
    closed = replace(stored, check_out=_event(17))

    first = repo.save_checkout(closed, _sample(17), expected_version=stored.version)
    second = repo.save_checkout(closed, _sample(17), expected_version=stored.version)

    assert first.is_checked_out
    assert first.version == 2
    assert second is None


def test_save_checkout_keeps_samples_appended_meanwhile():
    repo = InMemoryAttendanceRepository()
    stored = repo.create_checkin(_checked_in())
    repo.append_location_sample(stored.attendance_id, _sample(12, within=False))

    closed = repo.save_checkout(replace(stored, check_out=_event(17)), _sample(17), expected_version=stored.version)

    assert [s.timestamp.hour for s in closed.location_tracking] == [9, 12, 17]


def test_location_append_does_not_bump_version():
    repo = InMemoryAttendanceRepository()
    stored = repo.create_checkin(_checked_in())

    repo.append_location_sample(stored.attendance_id, _sample(10))

    assert repo.get_for_person_and_date(1, DAY).version == stored.version


def test_late_committed_sample_is_placed_at_the_tail():
    repo = InMemoryAttendanceRepository()
    stored = repo.create_checkin(_checked_in())
    repo.append_location_sample(stored.attendance_id, _sample(12))

    repo.append_location_sample(stored.attendance_id, _sample(11, within=False))

    trail = repo.get_for_person_and_date(1, DAY).location_tracking
    assert [s.timestamp.hour for s in trail] == [9, 12, 12]
    assert trail[-1].is_within_geofence is False


def test_append_to_unknown_record_is_not_found():
    with pytest.raises(NotFoundError):
        InMemoryAttendanceRepository().append_location_sample(42, _sample(10))


def test_listing_filters_and_orders_newest_first():
    repo = InMemoryAttendanceRepository()
    for day in (1, 3, 2):
        repo.create_checkin(_checked_in(work_date=date(2026, 2, day)))
    repo.create_checkin(_checked_in(person_id=2))

    assert [r.work_date.day for r in repo.list_for_person(1)] == [3, 2, 1]
    assert [r.work_date.day for r in repo.list_for_person(1, start_date=date(2026, 2, 2))] == [3, 2]
    assert [r.person_id for r in repo.list_for_branch(1, start_date=DAY, end_date=DAY)] == [2, 1]

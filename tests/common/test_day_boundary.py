from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from src.geo_attendance.geo_attendance.common.datetime_utils import DayBoundary, parse_iso_date
from src.geo_attendance.geo_attendance.core.exceptions import ValidationError


def test_default_boundary_is_utc_midnight():
    boundary = DayBoundary()

    assert boundary.work_date(datetime(2026, 2, 1, 23, 59, tzinfo=timezone.utc)) == date(2026, 2, 1)
    assert boundary.work_date(datetime(2026, 2, 2, 0, 0, tzinfo=timezone.utc)) == date(2026, 2, 2)


def test_named_zone_moves_the_boundary():
    kolkata = DayBoundary.from_name("Asia/Kolkata")

    assert kolkata.work_date(datetime(2026, 2, 1, 18, 29, tzinfo=timezone.utc)) == date(2026, 2, 1)
    assert kolkata.work_date(datetime(2026, 2, 1, 18, 30, tzinfo=timezone.utc)) == date(2026, 2, 2)


def test_same_instant_in_other_offset_maps_to_same_day():
    instant = datetime(2026, 2, 2, 1, 0, tzinfo=timezone(timedelta(hours=5)))

    assert DayBoundary().work_date(instant) == date(2026, 2, 1)


@pytest.mark.parametrize("name", [None, "", "UTC", "utc"])
def test_blank_or_utc_name_is_default(name):
    assert DayBoundary.from_name(name) == DayBoundary()


def test_unknown_zone_is_rejected():
    with pytest.raises(ValidationError):
        DayBoundary.from_name("Mars/Olympus_Mons")


def test_naive_instant_is_rejected():
    with pytest.raises(ValidationError):
        DayBoundary().work_date(datetime(2026, 2, 2, 9, 0))


def test_parse_iso_date():
    assert parse_iso_date("2026-02-02") == date(2026, 2, 2)
    with pytest.raises(ValidationError):
        parse_iso_date("02/02/2026")

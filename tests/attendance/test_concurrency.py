from __future__ import annotations

import threading
from datetime import date, datetime, timedelta, timezone

from src.geo_attendance.geo_attendance.attendance.memory_repository import InMemoryAttendanceRepository
from src.geo_attendance.geo_attendance.container import wire
from src.geo_attendance.geo_attendance.core.exceptions import AlreadyCheckedInError, AlreadyCheckedOutError
from src.geo_attendance.geo_attendance.devices.model import DeviceInfo
from src.geo_attendance.geo_attendance.geo.model import Coordinate

DEVICE = DeviceInfo(device_id="phone-1")
NEAR = Coordinate(28.6140, 77.2091)
FAR = Coordinate(28.6319, 77.2090)
TODAY = date(2026, 2, 2)


def _at(hour, minute=0):
    return datetime(2026, 2, 2, hour, minute, tzinfo=timezone.utc)


def _race(n, action):
    barrier = threading.Barrier(n)
    outcomes = []
    lock = threading.Lock()

    def run():
        barrier.wait()
        try:
            result = action()
        except Exception as e:  # collected for assertions
            result = e
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=run) for _ in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    return outcomes


def test_concurrent_first_check_ins_produce_one_record(service, attendance_repo):
    outcomes = _race(8, lambda: service.check_in(1, 1, NEAR, DEVICE, now=_at(9)))

    errors = [o for o in outcomes if isinstance(o, Exception)]
    assert len(outcomes) == 8
    assert len(errors) == 7
    assert all(isinstance(e, AlreadyCheckedInError) for e in errors)
    assert len(attendance_repo.list_for_person(1)) == 1


def test_concurrent_check_outs_close_the_day_once(service, attendance_repo):
    service.check_in(1, 1, NEAR, DEVICE, now=_at(9))

    outcomes = _race(6, lambda: service.check_out(1, NEAR, DEVICE, now=_at(17)))

    errors = [o for o in outcomes if isinstance(o, Exception)]
    assert len(errors) == 5
    assert all(isinstance(e, AlreadyCheckedOutError) for e in errors)
    record = attendance_repo.get_for_person_and_date(1, TODAY)
    assert record.check_out.time == _at(17)
    assert len(record.location_tracking) == 2


def test_concurrent_location_updates_are_all_kept(service, attendance_repo):
    service.check_in(1, 1, NEAR, DEVICE, now=_at(9))

    outcomes = _race(10, lambda: service.update_location(1, NEAR, now=_at(10)))

    assert not any(isinstance(o, Exception) for o in outcomes)
    record = attendance_repo.get_for_person_and_date(1, TODAY)
    assert len(record.location_tracking) == 11
    stamps = [s.timestamp for s in record.location_tracking]
    assert stamps == sorted(stamps)


class _InterleavingRepository(InMemoryAttendanceRepository):
    """Runs one queued action just before the next write commits."""

    def __init__(self):
        super().__init__()
        self.before_write = None

    def _interleave(self):
        action, self.before_write = self.before_write, None
        if action is not None:
            action()

    def save_checkout(self, record, sample, *, expected_version):
        self._interleave()
        return super().save_checkout(record, sample, expected_version=expected_version)

    def append_location_sample(self, attendance_id, sample):
        self._interleave()
        super().append_location_sample(attendance_id, sample)


def _interleaving_service(persons, branches, gate):
    repo = _InterleavingRepository()
    service = wire(attendance_repo=repo, persons=persons, branches=branches, device_gate=gate).attendance_service
    service.check_in(1, 1, NEAR, DEVICE, now=_at(9))
    return repo, service


def test_check_out_survives_a_later_ping_committing_first(persons, branches, gate):
    repo, service = _interleaving_service(persons, branches, gate)
    later = _at(17) + timedelta(milliseconds=1)
    repo.before_write = lambda: service.update_location(1, NEAR, now=later)

    record = service.check_out(1, NEAR, DEVICE, now=_at(17))

    assert record.check_out.time == _at(17)
    assert [s.timestamp for s in record.location_tracking] == [_at(9), later, later]


def test_location_update_survives_a_later_one_committing_first(persons, branches, gate):
    repo, service = _interleaving_service(persons, branches, gate)
    later = _at(10) + timedelta(milliseconds=5)
    repo.before_write = lambda: service.update_location(1, FAR, now=later)

    check = service.update_location(1, NEAR, now=_at(10))

    trail = repo.get_for_person_and_date(1, TODAY).location_tracking
    assert check.is_within
    assert len(trail) == 3
    assert [s.is_within_geofence for s in trail] == [True, False, True]
    assert trail[-1].timestamp == later


def test_concurrent_location_updates_with_distinct_clocks(service, attendance_repo):
    service.check_in(1, 1, NEAR, DEVICE, now=_at(9))
    counter = iter(range(100))
    lock = threading.Lock()

    def ping():
        with lock:
            offset = next(counter)
        # Later clocks first, so commits tend to arrive out of clock order.
        return service.update_location(1, NEAR, now=_at(10) + timedelta(milliseconds=20 - offset))

    outcomes = _race(12, ping)

    assert not any(isinstance(o, Exception) for o in outcomes)
    stamps = [s.timestamp for s in attendance_repo.get_for_person_and_date(1, TODAY).location_tracking]
    assert len(stamps) == 13
    assert stamps == sorted(stamps)

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

import pytest

os.environ.setdefault("APP_ENV", "testing")

from src.geo_attendance.geo_attendance.attendance.memory_repository import InMemoryAttendanceRepository
from src.geo_attendance.geo_attendance.container import wire
from src.geo_attendance.geo_attendance.core.enums import DeviceVerdict
from src.geo_attendance.geo_attendance.directory.model import Person
from src.geo_attendance.geo_attendance.geo.model import Coordinate, GeofenceSpec

HQ = GeofenceSpec(center=Coordinate(28.6139, 77.2090), radius_meters=250, label="Head Office")


@dataclass
class InMemoryPersons:
    people: dict[int, Person]
    pushes: list = field(default_factory=list)
    fail_pushes: bool = False

    def get_by_id(self, person_id: int) -> Optional[Person]:
        return self.people.get(person_id)

    def update_last_known_location(self, person_id, position, *, at, event):
        if self.fail_pushes:
            raise RuntimeError("directory unavailable")
        self.pushes.append((person_id, position, at, event))


@dataclass
class InMemoryBranches:
    geofences: dict[int, GeofenceSpec]

    def get_geofence(self, branch_id: int) -> Optional[GeofenceSpec]:
        return self.geofences.get(branch_id)


@dataclass
class FakeGate:
    verdicts: dict[str, DeviceVerdict] = field(default_factory=dict)
    calls: int = 0
    requests: list = field(default_factory=list)

    def is_approved(self, person_id, device_fingerprint):
        self.calls += 1
        return self.verdicts.get(device_fingerprint, DeviceVerdict.APPROVED)

    def request_approval(self, person_id, metadata):
        self.requests.append((person_id, metadata))
        return len(self.requests)


@pytest.fixture
def persons():
    return InMemoryPersons({
        1: Person(person_id=1, full_name="A", branch_id=1),
        2: Person(person_id=2, full_name="B", branch_id=1),
        3: Person(person_id=3, full_name="Inactive", branch_id=1, is_active=False),
    })


@pytest.fixture
def branches():
    return InMemoryBranches({1: HQ})


@pytest.fixture
def gate():
    return FakeGate()


@pytest.fixture
def attendance_repo():
    return InMemoryAttendanceRepository()


@pytest.fixture
def container(attendance_repo, persons, branches, gate):
    return wire(attendance_repo=attendance_repo, persons=persons, branches=branches, device_gate=gate)


@pytest.fixture
def service(container):
    return container.attendance_service


class FakeCursor:
    def __init__(self, db):
        self._db = db
        self._rows = []
        self.lastrowid = None
        self.rowcount = 0

    def execute(self, sql, params=()):
        self._db.executed.append((" ".join(sql.split()), tuple(params)))
        self._rows = self._db.results.pop(0) if self._db.results else []
        self.rowcount = len(self._rows)
        self.lastrowid = self._db.lastrowid

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)

    def close(self):
        pass


class FakeConnection:
    def __init__(self, db):
        self._db = db

    def cursor(self, dictionary=False):
        return FakeCursor(self._db)

    def commit(self):
        self._db.commits += 1

    def rollback(self):
        self._db.rollbacks += 1

    def close(self):
        pass


@dataclass
class FakeDatabase:
    """Stands in for DatabaseConnection; each execute consumes the next queued result set."""

    results: list = field(default_factory=list)
    executed: list = field(default_factory=list)
    lastrowid: Optional[int] = None
    commits: int = 0
    rollbacks: int = 0

    def connect(self):
        return FakeConnection(self)


@pytest.fixture
def fake_db():
    return FakeDatabase()

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date
from typing import Callable, Dict, Optional, Sequence, Tuple

from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError, NotFoundError
from .model import AttendanceRecord, LocationSample
from .repository import AttendanceRepository
from .tracking import append_sample


class InMemoryAttendanceRepository(AttendanceRepository):
    """Thread-safe process-local store.

    One lock guards the whole map, so every operation is linearizable. Used for local
    runs without MySQL and as the reference store in tests.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._by_key: Dict[Tuple[int, date], AttendanceRecord] = {}
        self._key_by_id: Dict[int, Tuple[int, date]] = {}
        self._next_id = 0

    def get_for_person_and_date(self, person_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with self._lock:
            return self._by_key.get((person_id, work_date))

    def list_for_person(self, person_id, *, start_date=None, end_date=None) -> Sequence[AttendanceRecord]:
        return self._select(lambda r: r.person_id == person_id, start_date, end_date)

    def list_for_branch(self, branch_id, *, start_date=None, end_date=None) -> Sequence[AttendanceRecord]:
        return self._select(lambda r: r.branch_id == branch_id, start_date, end_date)

    def create_placeholder(
        self, *, person_id: int, branch_id: int, work_date: date, status: AttendanceStatus
    ) -> AttendanceRecord:
        record = AttendanceRecord(
            attendance_id=0, person_id=person_id, work_date=work_date, branch_id=branch_id, status=status
        )
        return self._insert(record)

    def create_checkin(self, record: AttendanceRecord) -> AttendanceRecord:
        return self._insert(record)

    def fill_checkin(self, record: AttendanceRecord, *, expected_version: int) -> Optional[AttendanceRecord]:
        with self._lock:
            current = self._get_by_id(record.attendance_id)
            if current.version != expected_version or current.is_checked_in:
                return None
            stored = replace(record, version=current.version + 1)
            self._by_key[(stored.person_id, stored.work_date)] = stored
            return stored

    def save_checkout(
        self, record: AttendanceRecord, sample: LocationSample, *, expected_version: int
    ) -> Optional[AttendanceRecord]:
        with self._lock:
            current = self._get_by_id(record.attendance_id)
            if current.version != expected_version or current.is_checked_out:
                return None
            # Samples appended since the caller's read are kept; ordering is checked against them.
            trail = append_sample(current.location_tracking, sample)
            stored = replace(record, location_tracking=trail, version=current.version + 1)
            self._by_key[(stored.person_id, stored.work_date)] = stored
            return stored

    def append_location_sample(self, attendance_id: int, sample: LocationSample) -> None:
        with self._lock:
            current = self._get_by_id(attendance_id)
            trail = append_sample(current.location_tracking, sample)
            self._by_key[(current.person_id, current.work_date)] = replace(current, location_tracking=trail)

    def _insert(self, record: AttendanceRecord) -> AttendanceRecord:
        key = (record.person_id, record.work_date)
        with self._lock:
            if key in self._by_key:
                raise ConflictError("Attendance record already exists for this day")
            self._next_id += 1
            stored = replace(record, attendance_id=self._next_id, version=1)
            self._by_key[key] = stored
            self._key_by_id[stored.attendance_id] = key
            return stored

    def _get_by_id(self, attendance_id: int) -> AttendanceRecord:
        key = self._key_by_id.get(attendance_id)
        if key is None:
            raise NotFoundError(f"Attendance record {attendance_id} not found")
        return self._by_key[key]

    def _select(
        self,
        predicate: Callable[[AttendanceRecord], bool],
        start_date: Optional[date],
        end_date: Optional[date],
    ) -> Sequence[AttendanceRecord]:
        with self._lock:
            items = [
                r
                for r in self._by_key.values()
                if predicate(r)
                and (start_date is None or r.work_date >= start_date)
                and (end_date is None or r.work_date <= end_date)
            ]
        items.sort(key=lambda r: (r.work_date, r.person_id), reverse=True)
        return items

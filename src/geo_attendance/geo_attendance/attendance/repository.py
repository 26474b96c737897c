from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, LocationSample


class AttendanceRepository(Protocol):
    """Durable per-(person, day) attendance records.

    Implementations must enforce uniqueness of (person_id, work_date) and serialize
    appends to a record's location trail.
    """

    def get_for_person_and_date(self, person_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_person(
        self, person_id: int, *, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> Sequence[AttendanceRecord]:
        """Newest first."""
        raise NotImplementedError

    def list_for_branch(
        self, branch_id: int, *, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> Sequence[AttendanceRecord]:
        """Newest first."""
        raise NotImplementedError

    def create_placeholder(
        self, *, person_id: int, branch_id: int, work_date: date, status: AttendanceStatus
    ) -> AttendanceRecord:
        """Pre-create a record without check-in. Raises ConflictError if the day exists."""
        raise NotImplementedError

    def create_checkin(self, record: AttendanceRecord) -> AttendanceRecord:
        """Atomically insert a checked-in record and its first sample.

        Raises ConflictError when a record for the same (person, day) already exists.
        """
        raise NotImplementedError

    def fill_checkin(self, record: AttendanceRecord, *, expected_version: int) -> Optional[AttendanceRecord]:
        """Fill the check-in of a placeholder; ``None`` if it was checked in meanwhile."""
        raise NotImplementedError

    def save_checkout(
        self, record: AttendanceRecord, sample: LocationSample, *, expected_version: int
    ) -> Optional[AttendanceRecord]:
        """Persist check-out fields plus the closing sample; ``None`` if the version moved."""
        raise NotImplementedError

    def append_location_sample(self, attendance_id: int, sample: LocationSample) -> None:
        """Append to the trail. Raises ValidationError for a sample older than the last one."""
        raise NotImplementedError

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import DayBoundary, require_aware
from ..common.validators import require_id
from ..core.enums import TrackingEvent
from ..core.exceptions import (
    AlreadyCheckedInError,
    AlreadyCheckedOutError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..devices.gate import DeviceApprovalGuard
from ..devices.model import DeviceInfo
from ..directory.repository import BranchDirectory, PersonDirectory
from ..geo.model import Coordinate, CustomPremise, GeofenceCheck
from ..geo.resolver import GeofenceResolver
from .model import AttendanceRecord, GeofenceCompliance
from .repository import AttendanceRepository
from .state_machine import AttendanceStateMachine
from .tracking import compliance_summary

logger = logging.getLogger(__name__)


class AttendanceService:
    """Geofence-gated attendance operations.

    Every mutating call takes the current instant explicitly; the calendar day a call
    belongs to is derived from it through a DayBoundary (service default, or per call).
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        persons: PersonDirectory,
        branches: BranchDirectory,
        devices: DeviceApprovalGuard,
        *,
        resolver: GeofenceResolver | None = None,
        state_machine: AttendanceStateMachine | None = None,
        day_boundary: DayBoundary | None = None,
    ):
        self._attendance = attendance
        self._persons = persons
        self._branches = branches
        self._devices = devices
        self._resolver = resolver or GeofenceResolver()
        self._machine = state_machine or AttendanceStateMachine(resolver=self._resolver)
        self._day_boundary = day_boundary or DayBoundary()

    def check_in(
        self,
        person_id: int,
        branch_id: int,
        position: Coordinate,
        device_info: DeviceInfo,
        *,
        now: datetime,
        notes: Optional[str] = None,
        custom_premise: Optional[CustomPremise] = None,
        day_boundary: DayBoundary | None = None,
    ) -> AttendanceRecord:
        person_id = require_id(person_id, "staffId")
        branch_id = require_id(branch_id, "branchId")
        work_date = self._work_date(now, day_boundary)

        self._require_person(person_id)
        branch_geofence = self._branches.get_geofence(branch_id)
        if branch_geofence is None:
            raise NotFoundError("Branch not found")

        self._devices.require_approved(person_id, device_info.device_id, now=now)

        # Resolved once; the same source is snapshotted onto the record for the rest of the day.
        source = self._resolver.resolve(branch_geofence, custom_premise)
        existing = self._attendance.get_for_person_and_date(person_id, work_date)
        record = self._machine.check_in(
            existing,
            person_id=person_id,
            branch_id=branch_id,
            work_date=work_date,
            source=source,
            position=position,
            device_info=device_info,
            now=now,
            notes=notes,
            custom_premise=custom_premise,
        )

        if existing is None:
            try:
                stored = self._attendance.create_checkin(record)
            except ConflictError:
                raise AlreadyCheckedInError("Already checked in today") from None
        else:
            stored = self._attendance.fill_checkin(record, expected_version=existing.version)
            if stored is None:
                raise AlreadyCheckedInError("Already checked in today")

        logger.info(
            "check-in person_id=%s work_date=%s source=%s within=%s distance=%.1fm",
            person_id, work_date, source.kind.value,
            stored.check_in.is_within_geofence, stored.check_in.distance_meters,
        )
        self._push_location(person_id, position, now, TrackingEvent.CHECK_IN)
        return stored

    def check_out(
        self,
        person_id: int,
        position: Coordinate,
        device_info: DeviceInfo,
        *,
        now: datetime,
        notes: Optional[str] = None,
        day_boundary: DayBoundary | None = None,
    ) -> AttendanceRecord:
        person_id = require_id(person_id, "staffId")
        work_date = self._work_date(now, day_boundary)

        self._require_person(person_id)
        self._devices.require_approved(person_id, device_info.device_id, now=now)

        record = self._attendance.get_for_person_and_date(person_id, work_date)
        updated = self._machine.check_out(record, position=position, device_info=device_info, now=now, notes=notes)
        stored = self._attendance.save_checkout(
            updated, updated.location_tracking[-1], expected_version=record.version
        )
        if stored is None:
            current = self._attendance.get_for_person_and_date(person_id, work_date)
            if current is not None and current.is_checked_out:
                raise AlreadyCheckedOutError("Already checked out today")
            raise ConflictError("Attendance record changed concurrently, please retry")

        logger.info(
            "check-out person_id=%s work_date=%s within=%s total_hours=%s",
            person_id, work_date, stored.check_out.is_within_geofence, stored.total_hours,
        )
        self._push_location(person_id, position, now, TrackingEvent.CHECK_OUT)
        return stored

    def update_location(
        self,
        person_id: int,
        position: Coordinate,
        *,
        now: datetime,
        day_boundary: DayBoundary | None = None,
    ) -> GeofenceCheck:
        person_id = require_id(person_id, "staffId")
        work_date = self._work_date(now, day_boundary)

        record = self._attendance.get_for_person_and_date(person_id, work_date)
        updated, check = self._machine.track(record, position=position, now=now)
        self._attendance.append_location_sample(record.attendance_id, updated.location_tracking[-1])

        logger.debug(
            "location sample person_id=%s work_date=%s within=%s distance=%.1fm",
            person_id, work_date, check.is_within, check.distance_meters,
        )
        self._push_location(person_id, position, now, TrackingEvent.UPDATE_LOCATION)
        return check

    def get_attendance(
        self, person_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> Sequence[AttendanceRecord]:
        self._check_range(start_date, end_date)
        return self._attendance.list_for_person(
            require_id(person_id, "staffId"), start_date=start_date, end_date=end_date
        )

    def get_today_attendance(
        self, person_id: int, *, now: datetime, day_boundary: DayBoundary | None = None
    ) -> Optional[AttendanceRecord]:
        work_date = self._work_date(now, day_boundary)
        return self._attendance.get_for_person_and_date(require_id(person_id, "staffId"), work_date)

    def get_branch_attendance(
        self, branch_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> Sequence[AttendanceRecord]:
        self._check_range(start_date, end_date)
        return self._attendance.list_for_branch(
            require_id(branch_id, "branchId"), start_date=start_date, end_date=end_date
        )

    def get_today_branch_attendance(
        self, branch_id: int, *, now: datetime, day_boundary: DayBoundary | None = None
    ) -> Sequence[AttendanceRecord]:
        work_date = self._work_date(now, day_boundary)
        return self._attendance.list_for_branch(
            require_id(branch_id, "branchId"), start_date=work_date, end_date=work_date
        )

    def get_branch_compliance(
        self, branch_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> GeofenceCompliance:
        records = self.get_branch_attendance(branch_id, start_date, end_date)
        return compliance_summary(int(branch_id), records, start_date=start_date, end_date=end_date)

    def _work_date(self, now: datetime, day_boundary: DayBoundary | None) -> date:
        require_aware(now)
        return (day_boundary or self._day_boundary).work_date(now)

    def _require_person(self, person_id: int) -> None:
        person = self._persons.get_by_id(person_id)
        if person is None or not person.is_active:
            raise NotFoundError("Staff not found")

    @staticmethod
    def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
        if start_date and end_date and start_date > end_date:
            raise ValidationError("startDate must not be after endDate")

    def _push_location(self, person_id: int, position: Coordinate, now: datetime, event: TrackingEvent) -> None:
        # Fire-and-forget: the record is already durable, a failed push must not undo it.
        try:
            self._persons.update_last_known_location(person_id, position, at=now, event=event)
        except Exception:
            logger.warning(
                "last known location update failed person_id=%s event=%s", person_id, event.value, exc_info=True
            )

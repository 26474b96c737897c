"""Check-in / check-out transitions of a single day's attendance record.

States per (person, day): no record -> checked in -> completed. Every transition is a
pure function of the current record and the request; persistence is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple

from ..core.exceptions import (
    AlreadyCheckedInError,
    AlreadyCheckedOutError,
    CheckInRequiredError,
    ValidationError,
)
from ..devices.model import DeviceInfo
from ..geo.model import Coordinate, CustomPremise, GeofenceCheck, GeofenceSource
from ..geo.resolver import GeofenceResolver
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, CheckEvent
from .tracking import append_sample, make_sample

_HOURS = Decimal("0.01")


def compute_total_hours(check_in: datetime, check_out: datetime) -> Decimal:
    """Elapsed hours between the two instants, rounded half away from zero to 2 places."""
    if check_out < check_in:
        raise ValidationError("Check-out time precedes check-in time")
    seconds = Decimal(str((check_out - check_in).total_seconds()))
    return (seconds / Decimal(3600)).quantize(_HOURS, rounding=ROUND_HALF_UP)


@dataclass
class AttendanceStateMachine:
    resolver: GeofenceResolver = field(default_factory=GeofenceResolver)
    strategy_factory: AttendanceStrategyFactory = field(default_factory=AttendanceStrategyFactory)

    def check_in(
        self,
        existing: Optional[AttendanceRecord],
        *,
        person_id: int,
        branch_id: int,
        work_date: date,
        source: GeofenceSource,
        position: Coordinate,
        device_info: Optional[DeviceInfo],
        now: datetime,
        notes: Optional[str] = None,
        custom_premise: Optional[CustomPremise] = None,
    ) -> AttendanceRecord:
        """Open the day's session.

        ``existing`` is either ``None`` or a placeholder record; a record that already
        carries a check-in is rejected.
        """
        if existing is not None and existing.is_checked_in:
            raise AlreadyCheckedInError("Already checked in today")

        check = self.resolver.within_geofence(position, source.spec)
        decision = self.strategy_factory.for_checkin(check=check).decide_checkin(check=check)

        event = CheckEvent(
            time=now,
            location=position,
            is_within_geofence=check.is_within,
            distance_meters=check.distance_meters,
            radius_meters=check.radius_meters,
            location_label=source.spec.label,
            device_info=device_info,
            notes=notes if notes is not None else decision.note,
        )
        trail = existing.location_tracking if existing is not None else ()
        fields = dict(
            branch_id=branch_id,
            status=decision.status,
            check_in=event,
            geofence=source,
            custom_premise_used=source.is_override,
            custom_premise=custom_premise if source.is_override else None,
            location_tracking=append_sample(trail, make_sample(position=position, check=check, now=now)),
        )

        if existing is not None:
            return replace(existing, **fields)
        return AttendanceRecord(attendance_id=0, person_id=person_id, work_date=work_date, **fields)

    def check_out(
        self,
        record: Optional[AttendanceRecord],
        *,
        position: Coordinate,
        device_info: Optional[DeviceInfo],
        now: datetime,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        """Close the day's session against the geofence used at check-in. The status is kept."""
        if record is None or not record.is_checked_in:
            raise CheckInRequiredError("Must check in before checking out")
        if record.is_checked_out:
            raise AlreadyCheckedOutError("Already checked out today")

        total_hours = compute_total_hours(record.check_in.time, now)
        check = self._evaluate(record, position)

        event = CheckEvent(
            time=now,
            location=position,
            is_within_geofence=check.is_within,
            distance_meters=check.distance_meters,
            radius_meters=check.radius_meters,
            location_label=record.geofence.spec.label,
            device_info=device_info,
            notes=notes,
        )
        return replace(
            record,
            check_out=event,
            total_hours=total_hours,
            location_tracking=append_sample(
                record.location_tracking, make_sample(position=position, check=check, now=now)
            ),
        )

    def track(
        self,
        record: Optional[AttendanceRecord],
        *,
        position: Coordinate,
        now: datetime,
    ) -> Tuple[AttendanceRecord, GeofenceCheck]:
        """Append a position sample without touching check-in, check-out or status."""
        if record is None or not record.is_checked_in:
            raise CheckInRequiredError("No active attendance session for today")
        if now < record.check_in.time:
            raise ValidationError("Location sample precedes the check-in")

        check = self._evaluate(record, position)
        sample = make_sample(position=position, check=check, now=now)
        return replace(record, location_tracking=append_sample(record.location_tracking, sample)), check

    def _evaluate(self, record: AttendanceRecord, position: Coordinate) -> GeofenceCheck:
        # Re-use the snapshot taken at check-in, never a freshly fetched branch geofence.
        return self.resolver.within_geofence(position, record.geofence.spec)

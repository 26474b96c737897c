from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Tuple

from ..core.enums import AttendanceStatus
from ..devices.model import DeviceInfo
from ..geo.model import Coordinate, CustomPremise, GeofenceSource


@dataclass(frozen=True)
class CheckEvent:
    """One half of a day's session (check-in or check-out)."""

    time: datetime
    location: Coordinate
    is_within_geofence: bool
    distance_meters: float
    radius_meters: float
    location_label: Optional[str] = None
    device_info: Optional[DeviceInfo] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class LocationSample:
    """One entry of the location tracking trail."""

    timestamp: datetime
    position: Coordinate
    is_within_geofence: bool
    distance_meters: float


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: the attendance record of one person for one calendar day.

    A record with ``check_in is None`` is a placeholder created for another purpose
    (e.g. a pre-registered leave day); the first check-in fills it.
    """

    attendance_id: int
    person_id: int
    work_date: date
    branch_id: int
    status: AttendanceStatus
    check_in: Optional[CheckEvent] = None
    check_out: Optional[CheckEvent] = None
    total_hours: Optional[Decimal] = None
    geofence: Optional[GeofenceSource] = None
    custom_premise_used: bool = False
    custom_premise: Optional[CustomPremise] = None
    location_tracking: Tuple[LocationSample, ...] = field(default_factory=tuple)
    version: int = 0

    @property
    def is_checked_in(self) -> bool:
        return self.check_in is not None

    @property
    def is_checked_out(self) -> bool:
        return self.check_out is not None


@dataclass(frozen=True)
class GeofenceCompliance:
    """Share of tracked samples that fell inside the geofence."""

    branch_id: int
    start_date: Optional[date]
    end_date: Optional[date]
    records: int
    total_samples: int
    samples_within: int
    percent_within: Optional[Decimal]

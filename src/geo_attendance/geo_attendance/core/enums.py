from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Attendance status persisted on a record."""

    PRESENT = "present"
    PENDING = "pending"
    LATE = "late"
    HALF_DAY = "half_day"
    ON_LEAVE = "on_leave"
    ABSENT = "absent"


class GeofenceSourceKind(str, Enum):
    """Where the effective perimeter of a request came from."""

    BRANCH = "branch"
    OVERRIDE = "override"


class DeviceVerdict(str, Enum):
    """Trust verdict returned by the device gate."""

    APPROVED = "approved"
    PENDING = "pending"
    NEW = "new"
    UNKNOWN = "unknown"


class DeviceType(str, Enum):
    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"
    OTHER = "other"


class TrackingEvent(str, Enum):
    """Which operation produced a last-known-location update."""

    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    UPDATE_LOCATION = "update_location"

from __future__ import annotations

from ...core.enums import AttendanceStatus
from ...geo.model import GeofenceCheck
from .base import AttendanceStrategy, StatusDecision


class OutsideGeofenceStrategy(AttendanceStrategy):
    """Check-in outside the perimeter: flagged for manual review."""

    def decide_checkin(self, *, check: GeofenceCheck) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.PENDING,
            note=f"Checked in {check.distance_meters:.0f} m from a {check.radius_meters:.0f} m geofence",
        )

from __future__ import annotations

from ...core.enums import AttendanceStatus
from ...geo.model import GeofenceCheck
from .base import AttendanceStrategy, StatusDecision


class WithinGeofenceStrategy(AttendanceStrategy):
    """Check-in inside the perimeter."""

    def decide_checkin(self, *, check: GeofenceCheck) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

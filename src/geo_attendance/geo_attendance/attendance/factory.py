from __future__ import annotations

from dataclasses import dataclass

from ..geo.model import GeofenceCheck
from .strategies.base import AttendanceStrategy
from .strategies.outside_strategy import OutsideGeofenceStrategy
from .strategies.within_strategy import WithinGeofenceStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on the geofence result."""

    def for_checkin(self, *, check: GeofenceCheck) -> AttendanceStrategy:
        if check.is_within:
            return WithinGeofenceStrategy()
        return OutsideGeofenceStrategy()

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..core.enums import TrackingEvent
from ..geo.model import Coordinate, GeofenceSpec
from .model import Person


class PersonDirectory(Protocol):
    """Staff directory as seen by the attendance core.

    Note (DIP): the service depends on this interface, not on a concrete database.
    """

    def get_by_id(self, person_id: int) -> Optional[Person]:
        raise NotImplementedError

    def update_last_known_location(
        self, person_id: int, position: Coordinate, *, at: datetime, event: TrackingEvent
    ) -> None:
        raise NotImplementedError


class BranchDirectory(Protocol):
    def get_geofence(self, branch_id: int) -> Optional[GeofenceSpec]:
        raise NotImplementedError

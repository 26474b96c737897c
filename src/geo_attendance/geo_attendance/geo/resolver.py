from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from ..core.enums import GeofenceSourceKind
from .distance import haversine_distance
from .model import Coordinate, CustomPremise, GeofenceCheck, GeofenceSource, GeofenceSpec


@dataclass
class GeofenceResolver:
    """Picks the effective perimeter of a request and evaluates membership against it."""

    distance: Callable[[Coordinate, Coordinate], float] = haversine_distance

    def resolve(self, branch_geofence: GeofenceSpec, override: Optional[CustomPremise] = None) -> GeofenceSource:
        if override is not None and override.has_coordinates:
            return GeofenceSource(kind=GeofenceSourceKind.OVERRIDE, spec=override.to_spec())
        return GeofenceSource(kind=GeofenceSourceKind.BRANCH, spec=branch_geofence)

    def within_geofence(self, position: Coordinate, spec: GeofenceSpec) -> GeofenceCheck:
        meters = self.distance(position, spec.center)
        return GeofenceCheck(
            is_within=meters <= spec.radius_meters,
            distance_meters=meters,
            radius_meters=spec.radius_meters,
        )

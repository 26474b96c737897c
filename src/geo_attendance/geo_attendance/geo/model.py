from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..common.validators import require_in_range, require_number
from ..core.constants import (
    DEFAULT_CUSTOM_PREMISE_LABEL,
    DEFAULT_CUSTOM_PREMISE_RADIUS,
    MIN_GEOFENCE_RADIUS,
)
from ..core.enums import GeofenceSourceKind
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Coordinate:
    """A reported or registered position, in degrees."""

    latitude: float
    longitude: float
    accuracy: Optional[float] = None

    def __post_init__(self):
        lat = require_in_range(require_number(self.latitude, "latitude"), "latitude", -90, 90)
        lon = require_in_range(require_number(self.longitude, "longitude"), "longitude", -180, 180)
        object.__setattr__(self, "latitude", lat)
        object.__setattr__(self, "longitude", lon)
        if self.accuracy is not None:
            accuracy = require_number(self.accuracy, "accuracy")
            if accuracy < 0:
                raise ValidationError("accuracy must not be negative")
            object.__setattr__(self, "accuracy", accuracy)

    @classmethod
    def from_dict(cls, data: Any, *, field_name: str = "location") -> "Coordinate":
        if not isinstance(data, Mapping):
            raise ValidationError(f"{field_name} is required")
        return cls(
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            accuracy=data.get("accuracy"),
        )

    def to_dict(self) -> dict:
        out = {"latitude": self.latitude, "longitude": self.longitude}
        if self.accuracy is not None:
            out["accuracy"] = self.accuracy
        return out


@dataclass(frozen=True)
class GeofenceSpec:
    """Circular perimeter: center + radius."""

    center: Coordinate
    radius_meters: float
    label: str

    def __post_init__(self):
        radius = require_number(self.radius_meters, "radius")
        if radius < MIN_GEOFENCE_RADIUS:
            raise ValidationError(f"radius must be at least {MIN_GEOFENCE_RADIUS} meter")
        object.__setattr__(self, "radius_meters", radius)

    def to_dict(self) -> dict:
        return {
            "center": self.center.to_dict(),
            "radius": self.radius_meters,
            "label": self.label,
        }


@dataclass(frozen=True)
class CustomPremise:
    """Caller-supplied temporary perimeter for a single request.

    Coordinates are optional: a premise without both of them does not override anything.
    """

    label: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_meters: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def to_spec(self) -> GeofenceSpec:
        if not self.has_coordinates:
            raise ValidationError("Custom premise has no coordinates")
        radius = self.radius_meters if self.radius_meters is not None else DEFAULT_CUSTOM_PREMISE_RADIUS
        return GeofenceSpec(
            center=Coordinate(latitude=self.latitude, longitude=self.longitude),
            radius_meters=radius,
            label=self.label or DEFAULT_CUSTOM_PREMISE_LABEL,
        )

    @classmethod
    def from_dict(cls, data: Any) -> Optional["CustomPremise"]:
        if data is None:
            return None
        if not isinstance(data, Mapping):
            raise ValidationError("customPremiseData must be an object")

        def _optional_number(key: str) -> Optional[float]:
            value = data.get(key)
            return require_number(value, key) if value not in (None, "") else None

        return cls(
            label=data.get("name") or None,
            latitude=_optional_number("latitude"),
            longitude=_optional_number("longitude"),
            radius_meters=_optional_number("radius"),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.label,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "radius": self.radius_meters,
        }


@dataclass(frozen=True)
class GeofenceSource:
    """Tagged variant: which perimeter applies, and where it came from."""

    kind: GeofenceSourceKind
    spec: GeofenceSpec

    @property
    def is_override(self) -> bool:
        return self.kind == GeofenceSourceKind.OVERRIDE


@dataclass(frozen=True)
class GeofenceCheck:
    is_within: bool
    distance_meters: float
    radius_meters: float

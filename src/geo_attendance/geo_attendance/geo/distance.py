"""Great-circle distance between two coordinates."""

from __future__ import annotations

import math

from ..core.constants import EARTH_RADIUS_METERS
from .model import Coordinate


def haversine_distance(a: Coordinate, b: Coordinate) -> float:
    """Distance in meters between ``a`` and ``b`` using the haversine formula.

    Pure and symmetric; ``haversine_distance(a, a) == 0``.
    """
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    dphi = math.radians(b.latitude - a.latitude)
    dlambda = math.radians(b.longitude - a.longitude)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # Floating error can push h a hair outside [0, 1].
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_METERS * math.atan2(math.sqrt(h), math.sqrt(1 - h))

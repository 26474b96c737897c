from __future__ import annotations

import pytest

from src.geo_attendance.geo_attendance.geo.distance import haversine_distance
from src.geo_attendance.geo_attendance.geo.model import Coordinate

DELHI = Coordinate(28.6139, 77.2090)


@pytest.mark.parametrize(
    "point",
    [DELHI, Coordinate(0, 0), Coordinate(-33.8688, 151.2093), Coordinate(89.9, -179.9)],
)
def test_distance_to_self_is_zero(point):
    assert haversine_distance(point, point) == 0


@pytest.mark.parametrize(
    "a,b",
    [
        (DELHI, Coordinate(28.6140, 77.2091)),
        (Coordinate(10.7769, 106.7009), Coordinate(10.7800, 106.7050)),
        (Coordinate(51.5074, -0.1278), Coordinate(48.8566, 2.3522)),
    ],
)
def test_distance_is_symmetric(a, b):
    assert haversine_distance(a, b) == pytest.approx(haversine_distance(b, a), abs=1e-9)


def test_nearby_point_is_about_fifteen_meters():
    assert haversine_distance(DELHI, Coordinate(28.6140, 77.2091)) == pytest.approx(14.8, abs=0.1)


def test_one_degree_of_latitude():
    # 2 * pi * 6371 km / 360
    assert haversine_distance(Coordinate(0, 0), Coordinate(1, 0)) == pytest.approx(111_194.93, rel=1e-6)


def test_two_kilometers_north():
    assert haversine_distance(DELHI, Coordinate(28.6319, 77.2090)) == pytest.approx(2001.5, abs=1.0)

from __future__ import annotations

import math

import pytest

from geowithin.builders import make_coordinate
from geowithin.errors import InvalidDistance
from geowithin.geo import (
    Distance,
    GnomonicFrame,
    angular_distance,
    haversine_km,
    hemisphere_center,
    point_in_ring,
    point_on_arc,
    segments_cross,
    segments_touch,
    to_unit_vector,
)


def test_haversine_one_degree_on_equator():
    distance = haversine_km(make_coordinate(0, 0), make_coordinate(0, 1))
    assert distance == pytest.approx(111.3188, rel=1e-4)


def test_angular_distance_is_symmetric_and_bounded():
    a = make_coordinate(40.7128, -74.0060)
    b = make_coordinate(55.6761, 12.5683)

    assert angular_distance(a, b) == pytest.approx(angular_distance(b, a))
    assert angular_distance(a, a) == 0
    assert angular_distance(make_coordinate(0, 0), make_coordinate(0, 180)) == pytest.approx(math.pi)


def test_angular_distance_treats_antimeridian_as_continuous():
    west = make_coordinate(0, 179.5)
    east = make_coordinate(0, -179.5)
    assert angular_distance(west, east) == pytest.approx(math.radians(1.0))


def test_distance_conversions():
    ten_miles = Distance.from_miles(10)

    assert ten_miles.as_kilometers == pytest.approx(16.09344)
    assert ten_miles.as_miles == pytest.approx(10)
    assert Distance.from_kilometers(6378.1).radians == pytest.approx(1.0)
    assert Distance.from_radians(0.5).as_kilometers == pytest.approx(3189.05)


@pytest.mark.parametrize("factory", [Distance.from_radians, Distance.from_kilometers, Distance.from_miles])
@pytest.mark.parametrize("value", [-1, math.nan, math.inf, "far"])
def test_distance_rejects_negative_or_non_finite(factory, value):
    with pytest.raises(InvalidDistance):
        factory(value)


def test_hemisphere_center_for_clustered_vertices():
    vectors = [to_unit_vector(make_coordinate(lat, lon)) for lat, lon in [(0, 0), (0, 10), (10, 10), (10, 0)]]
    center = hemisphere_center(vectors)

    assert center is not None
    assert all(sum(c * v for c, v in zip(center, vector)) > 0 for vector in vectors)


def test_hemisphere_center_missing_for_spread_vertices():
    vectors = [to_unit_vector(make_coordinate(0, lon)) for lon in (0, 120, -120)]
    assert hemisphere_center(vectors) is None
    assert hemisphere_center([]) is None


def test_gnomonic_projection_rejects_far_hemisphere():
    frame = GnomonicFrame.at(to_unit_vector(make_coordinate(0, 0)))

    assert frame.project(to_unit_vector(make_coordinate(0, 0))) == pytest.approx((0.0, 0.0), abs=1e-12)
    assert frame.project(to_unit_vector(make_coordinate(0, 180))) is None


def test_gnomonic_frame_at_pole():
    frame = GnomonicFrame.at((0.0, 0.0, 1.0))
    projected = frame.project(to_unit_vector(make_coordinate(80, 0)))

    assert projected is not None
    assert math.hypot(*projected) == pytest.approx(math.tan(math.radians(10)))


def test_point_on_arc():
    start = to_unit_vector(make_coordinate(0, 0))
    end = to_unit_vector(make_coordinate(0, 10))

    assert point_on_arc(to_unit_vector(make_coordinate(0, 5)), start, end, 1e-9)
    assert point_on_arc(start, start, end, 1e-9)
    assert not point_on_arc(to_unit_vector(make_coordinate(0, 11)), start, end, 1e-9)
    assert not point_on_arc(to_unit_vector(make_coordinate(0.01, 5)), start, end, 1e-9)


def test_point_in_ring_even_odd():
    square = [(0.0, 0.0), (4.0, 0.0), (4.0, 4.0), (0.0, 4.0)]

    assert point_in_ring((2.0, 2.0), square)
    assert not point_in_ring((5.0, 2.0), square)
    assert point_in_ring((2.0, 2.0), list(reversed(square)))


def test_segments_cross_excludes_touching_endpoints():
    assert segments_cross((0, 0), (2, 2), (0, 2), (2, 0))
    assert not segments_cross((0, 0), (1, 1), (1, 1), (2, 0))
    assert not segments_cross((0, 0), (1, 0), (0, 1), (1, 1))


def test_segments_touch_includes_endpoints_and_overlap():
    assert segments_touch((0, 0), (1, 1), (1, 1), (2, 0))
    assert segments_touch((0, 0), (2, 0), (1, 0), (3, 0))
    assert not segments_touch((0, 0), (1, 0), (0, 1), (1, 1))

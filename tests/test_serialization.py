from __future__ import annotations

import json

import pytest

from geowithin.builders import build_box, build_circle, build_polygon
from geowithin.datatypes import RegionKind
from geowithin.errors import InvalidRegion
from geowithin.serialization import region_from_mapping, region_to_dict, region_to_geojson

_SQUARE = [(0, 0), (0, 10), (10, 10), (10, 0)]
_HOLE = [(4, 4), (4, 6), (6, 6), (6, 4)]


@pytest.mark.parametrize(
    "region",
    [
        build_box((10, 20), (30, 40)),
        build_box((-10, 170), (10, -170)),
        build_circle((55.67, 12.56), 0.01),
        build_polygon(_SQUARE, holes=[_HOLE]),
    ],
)
def test_region_dict_rebuilds_equal_region(region):
    payload = region_to_dict(region)

    # Plain JSON types only.
    assert json.loads(json.dumps(payload)) == payload
    assert region_from_mapping(payload) == region


def test_region_to_dict_tags_kind():
    payload = region_to_dict(build_circle((1, 2), 0.5))

    assert payload == {
        "kind": "circle",
        "center": {"latitude": 1.0, "longitude": 2.0},
        "radius": 0.5,
    }


def test_region_from_mapping_accepts_box_edges():
    box = region_from_mapping({"kind": "BOX", "top": -12, "left": 176, "bottom": -21, "right": -178})

    assert box == build_box((-21, 176), (-12, -178))
    assert box.crosses_antimeridian


def test_region_from_mapping_accepts_kind_enum():
    box = region_from_mapping({"kind": RegionKind.BOX, "bottom_left": [0, 0], "top_right": [1, 1]})
    assert box == build_box((0, 0), (1, 1))


def test_region_from_mapping_circle_units():
    by_km = region_from_mapping({"kind": "circle", "center": {"lat": 0, "lng": 0}, "radius_km": 6378.1})
    by_miles = region_from_mapping({"kind": "circle", "center": {"lat": 0, "lng": 0}, "radius_miles": 10})

    assert by_km.radius == pytest.approx(1.0)
    assert by_miles.radius == pytest.approx(16_093.44 / 6_378_100)


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"kind": "hexagon"}, "Unknown region kind"),
        ({"center": [0, 0], "radius": 1}, "Unknown region kind"),
        ({"kind": "circle", "center": [0, 0]}, "missing field 'radius'"),
        ({"kind": "box", "bottom_left": [0, 0]}, "missing field 'top_right'"),
        ({"kind": "polygon"}, "missing field 'outer_ring'"),
        ({"kind": "circle", "center": [0, 0], "radius_km": -5}, "Invalid circle"),
        ({"kind": "circle", "center": [0, 0], "radius": 0}, "Invalid circle"),
        ({"kind": "box", "top": 0, "left": 0, "bottom": 10, "right": 10}, "below bottom latitude"),
        ({"kind": "polygon", "outer_ring": [[0, 0], [0, 10], [10, 10]], "holes": 5}, "holes must be a sequence"),
    ],
)
def test_region_from_mapping_rejects_bad_input(payload, message):
    with pytest.raises(InvalidRegion, match=message):
        region_from_mapping(payload)


def test_region_from_mapping_rejects_non_mapping():
    with pytest.raises(InvalidRegion):
        region_from_mapping([1, 2, 3])  # type: ignore[arg-type]


def test_box_geojson_uses_lng_lat_order():
    feature = region_to_geojson(build_box((10, 20), (30, 40)))

    assert feature["type"] == "Feature"
    assert feature["geometry"]["type"] == "Polygon"
    assert feature["geometry"]["coordinates"] == [[[20, 10], [40, 10], [40, 30], [20, 30], [20, 10]]]
    assert feature["properties"] == {"kind": "box", "crosses_antimeridian": False}


def test_circle_geojson_is_point_with_radius():
    feature = region_to_geojson(build_circle((55.67, 12.56), 0.01))

    assert feature["geometry"] == {"type": "Point", "coordinates": [12.56, 55.67]}
    assert feature["properties"] == {"kind": "circle", "radius_radians": 0.01}


def test_polygon_geojson_includes_holes():
    feature = region_to_geojson(build_polygon(_SQUARE, holes=[_HOLE]))
    outer, hole = feature["geometry"]["coordinates"]

    assert outer == [[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]]
    assert hole[0] == hole[-1] == [4, 4]
    assert len(hole) == 5

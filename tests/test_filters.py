"""Tests for record filtering helpers."""

from __future__ import annotations

from typing import Dict, List

from geowithin.builders import build_box, build_circle, build_polygon
from geowithin.filters import extract_location, filter_within
from geowithin.geo import Distance


def _person(name: str, lat: float, lng: float) -> Dict[str, object]:
    return {"name": name, "location": {"type": "Point", "coordinates": [lng, lat]}}


_PEOPLE: List[Dict[str, object]] = [
    _person("Diana", 40.7128, -74.0060),
    _person("Maria", 55.6761, 12.5683),
    _person("Tomas", 55.6280, 12.0826),
    {"name": "Manuela"},
]

_COPENHAGEN = (55.67, 12.56)


def _names(records) -> List[str]:
    return [record["name"] for record in records]


def test_filter_within_circle():
    near = build_circle(_COPENHAGEN, Distance.from_kilometers(10))
    wide = build_circle(_COPENHAGEN, Distance.from_kilometers(100))

    assert _names(filter_within(_PEOPLE, near)) == ["Maria"]
    assert _names(filter_within(_PEOPLE, wide)) == ["Maria", "Tomas"]


def test_filter_within_box_and_polygon():
    box = build_box((55.6281, 12.0826), (55.6762, 12.5684))
    triangle = build_polygon([(55, 12), (55.67, 12.5), (55.67, 11.5)])

    assert _names(filter_within(_PEOPLE, box)) == ["Maria"]
    assert _names(filter_within(_PEOPLE, triangle)) == ["Tomas"]


def test_filter_within_skips_records_without_location():
    everywhere = build_circle((0, 0), 3.14159)
    result = filter_within(_PEOPLE, everywhere)

    assert "Manuela" not in _names(result)
    assert len(result) == 3


def test_extract_location_from_embedded_point():
    location = extract_location(_PEOPLE[1])

    assert location is not None
    assert location.as_tuple() == (55.6761, 12.5683)


def test_extract_location_from_flat_keys():
    assert extract_location({"lat": 35.8, "lng": -78.6}).as_tuple() == (35.8, -78.6)
    assert extract_location({"latitude": 1, "longitude": 2}).as_tuple() == (1, 2)
    assert extract_location({"Y": 3, "X": 4}).as_tuple() == (3, 4)


def test_extract_location_ignores_unusable_values():
    assert extract_location({"location": {"type": "Polygon", "coordinates": [[0, 0], [1, 1]]}}) is None
    assert extract_location({"location": {"type": "Point", "coordinates": [0]}}) is None
    assert extract_location({"lat": 95, "lng": 0}) is None
    assert extract_location({"name": "Manuela"}) is None
    assert extract_location("not a record") is None  # type: ignore[arg-type]

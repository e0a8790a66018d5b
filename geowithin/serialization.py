"""Conversion between regions and plain mappings / GeoJSON."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

from .builders import build_box, build_box_from_edges, build_circle, build_polygon
from .datatypes import Box, Circle, Coordinate, Region, RegionKind
from .errors import InvalidDistance, InvalidRegion
from .geo import Distance


def region_to_dict(region: Region) -> Dict[str, Any]:
    """Return a JSON-compatible mapping tagged with the region kind."""

    return region.model_dump(mode="json")


def region_from_mapping(data: Mapping[str, Any]) -> Region:
    """Build a validated region from a mapping produced by ``region_to_dict``.

    Boxes may also be given as ``{"kind": "box", "top": .., "left": ..,
    "bottom": .., "right": ..}``. Circles accept ``radius`` in radians or
    ``radius_km`` / ``radius_miles``.
    """

    if not isinstance(data, Mapping):
        raise InvalidRegion(f"Region description must be a mapping; got {type(data).__name__}")

    raw_kind = data.get("kind")
    try:
        kind = raw_kind if isinstance(raw_kind, RegionKind) else RegionKind(str(raw_kind).lower())
    except ValueError as exc:
        allowed = ", ".join(item.value for item in RegionKind)
        raise InvalidRegion(f"Unknown region kind {raw_kind!r}; expected one of: {allowed}") from exc

    try:
        if kind is RegionKind.BOX:
            if {"top", "left", "bottom", "right"}.issubset(data):
                return build_box_from_edges(data["top"], data["left"], data["bottom"], data["right"])
            return build_box(data["bottom_left"], data["top_right"])
        if kind is RegionKind.CIRCLE:
            return build_circle(data["center"], _circle_radius(data))
        return build_polygon(data["outer_ring"], data.get("holes"))
    except KeyError as exc:
        raise InvalidRegion(f"{kind.value} description is missing field {exc.args[0]!r}") from exc
    except InvalidDistance as exc:
        raise InvalidRegion(f"Invalid circle: {exc}") from exc


def _circle_radius(data: Mapping[str, Any]) -> Any:
    if "radius" in data:
        return data["radius"]
    if "radius_km" in data:
        return Distance.from_kilometers(data["radius_km"])
    if "radius_miles" in data:
        return Distance.from_miles(data["radius_miles"])
    raise KeyError("radius")


def region_to_geojson(region: Region) -> Dict[str, Any]:
    """Return the region as a GeoJSON Feature (coordinates in [lng, lat] order)."""

    properties: Dict[str, Any] = {"kind": region.kind.value}
    geometry: Dict[str, Any]

    if isinstance(region, Box):
        properties["crosses_antimeridian"] = region.crosses_antimeridian
        geometry = {"type": "Polygon", "coordinates": [_box_ring(region)]}
    elif isinstance(region, Circle):
        properties["radius_radians"] = region.radius
        geometry = {"type": "Point", "coordinates": [region.center.longitude, region.center.latitude]}
    else:
        geometry = {
            "type": "Polygon",
            "coordinates": [_ring_coordinates(ring) for ring in (region.outer_ring, *region.holes)],
        }

    return {
        "type": "Feature",
        "geometry": geometry,
        "properties": properties,
    }


def _box_ring(box: Box) -> List[List[float]]:
    top, left, bottom, right = box.as_edges()
    return [[left, bottom], [right, bottom], [right, top], [left, top], [left, bottom]]


def _ring_coordinates(ring: Iterable[Coordinate]) -> List[List[float]]:
    points = [[vertex.longitude, vertex.latitude] for vertex in ring]
    if points and points[0] != points[-1]:
        points.append(points[0])
    return points

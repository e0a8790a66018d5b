"""Validating constructors for coordinates and query regions.

Every builder is a pure function: the same input always yields an equal
region or the same error. Failures raise :class:`InvalidCoordinate` or
:class:`InvalidRegion`, never a partially built value.

Rings are accepted open or closed. An open ring is closed by appending its
first vertex; consecutive duplicate vertices are dropped.
"""

from __future__ import annotations

import math
from itertools import combinations
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from .datatypes import Box, Circle, Coordinate, Polygon, Ring
from .errors import InvalidCoordinate, InvalidRegion
from .evaluator import RingPosition, locate_in_ring, prepare_ring, ring_frame
from .geo import Distance, GnomonicFrame, segments_cross, segments_touch, to_unit_vector, vector_angle
from .logging_utils import get_logger

logger = get_logger("geowithin.builders")

CoordinateLike = Union[Coordinate, Sequence[float], Mapping[str, Any]]

_COORDINATE_KEYS: Tuple[Tuple[str, str], ...] = (
    ("latitude", "longitude"),
    ("lat", "lng"),
    ("lat", "lon"),
)


def make_coordinate(lat: float, lon: float) -> Coordinate:
    """Build a coordinate, raising InvalidCoordinate for NaN, infinite or out-of-range values."""

    try:
        return Coordinate(latitude=lat, longitude=lon)
    except ValidationError as exc:
        raise InvalidCoordinate(_describe(exc)) from exc


def coerce_coordinate(value: CoordinateLike) -> Coordinate:
    """Accept a Coordinate, a (lat, lon) pair or a lat/lng mapping."""

    if isinstance(value, Coordinate):
        return value

    if isinstance(value, Mapping):
        for lat_key, lon_key in _COORDINATE_KEYS:
            if lat_key in value and lon_key in value:
                return make_coordinate(value[lat_key], value[lon_key])
        raise InvalidCoordinate(f"Mapping has no latitude/longitude keys: {sorted(value)}")

    if isinstance(value, (list, tuple)) and len(value) == 2:
        return make_coordinate(value[0], value[1])

    raise InvalidCoordinate(f"Cannot interpret {value!r} as a coordinate")


def build_box(bottom_left: CoordinateLike, top_right: CoordinateLike) -> Box:
    """Build a box from its bottom-left and top-right corners.

    A top-right longitude below the bottom-left longitude is accepted and
    marks a box that wraps across the antimeridian.
    """

    corner_bl = _vertex(bottom_left, "bottom_left")
    corner_tr = _vertex(top_right, "top_right")

    if corner_tr.latitude < corner_bl.latitude:
        raise _rejected(
            "box",
            f"top latitude {corner_tr.latitude} lies below bottom latitude {corner_bl.latitude}",
        )

    box = Box(bottom_left=corner_bl, top_right=corner_tr)
    logger.debug(
        "region_built",
        extra={
            "event": "region_built",
            "region_kind": box.kind.value,
            "crosses_antimeridian": box.crosses_antimeridian,
        },
    )
    return box


def build_box_from_edges(top: float, left: float, bottom: float, right: float) -> Box:
    """Build a box from its (top, left, bottom, right) edges."""

    return build_box(
        _vertex((bottom, left), "bottom/left edges"),
        _vertex((top, right), "top/right edges"),
    )


def build_circle(center: CoordinateLike, radius: Union[float, Distance]) -> Circle:
    """Build a circle; ``radius`` is an angle in radians or a :class:`Distance`."""

    centre = _vertex(center, "center")
    radians = radius.radians if isinstance(radius, Distance) else radius

    try:
        radians = float(radians)
    except (TypeError, ValueError) as exc:
        raise InvalidRegion(f"circle radius must be a number; got {radius!r}") from exc

    if not math.isfinite(radians):
        raise _rejected("circle", f"radius must be finite; got {radians}")
    if radians <= 0:
        raise _rejected("circle", f"radius must be greater than 0 radians; got {radians}")
    if radians > math.pi:
        raise _rejected("circle", f"radius must not exceed pi radians; got {radians}")

    circle = Circle(center=centre, radius=radians)
    logger.debug("region_built", extra={"event": "region_built", "region_kind": circle.kind.value})
    return circle


def build_polygon(
    outer_ring: Iterable[CoordinateLike],
    holes: Optional[Iterable[Iterable[CoordinateLike]]] = None,
) -> Polygon:
    """Build a polygon with optional holes.

    The outer ring needs three distinct vertices and must fit within one
    open hemisphere. Every hole must lie within the outer ring without
    crossing it, and holes may not cross, touch or contain each other.
    """

    outer = _normalize_ring(outer_ring, "outer ring")
    hole_rings = _normalize_holes(holes)

    frame = ring_frame(outer)
    if frame is None:
        raise _rejected("polygon", "outer ring does not fit within a single hemisphere")

    _check_holes(outer, hole_rings, frame)

    polygon = Polygon(outer_ring=outer, holes=hole_rings)
    logger.debug(
        "region_built",
        extra={
            "event": "region_built",
            "region_kind": polygon.kind.value,
            "vertices": len(outer) - 1,
            "holes": len(hole_rings),
        },
    )
    return polygon


def _normalize_holes(holes: Optional[Iterable[Iterable[CoordinateLike]]]) -> Tuple[Ring, ...]:
    if holes is None:
        return ()
    if isinstance(holes, (str, bytes, Mapping)):
        raise InvalidRegion("holes must be a sequence of rings")
    try:
        raw = list(holes)
    except TypeError as exc:
        raise InvalidRegion("holes must be a sequence of rings") from exc
    return tuple(_normalize_ring(hole, f"hole {index}") for index, hole in enumerate(raw))


def _normalize_ring(points: Iterable[CoordinateLike], label: str) -> Ring:
    if isinstance(points, (str, bytes, Mapping)):
        raise InvalidRegion(f"{label} must be a sequence of coordinates")
    try:
        raw = list(points)
    except TypeError as exc:
        raise InvalidRegion(f"{label} must be a sequence of coordinates") from exc

    vertices: List[Coordinate] = []
    for position, value in enumerate(raw):
        vertex = _vertex(value, f"{label} vertex {position}")
        if not vertices or vertices[-1] != vertex:
            vertices.append(vertex)

    if len(vertices) > 1 and vertices[0] == vertices[-1]:
        vertices.pop()

    # Distinct points on the sphere; every longitude at a pole is one point.
    distinct = {tuple(round(axis, 12) for axis in to_unit_vector(vertex)) for vertex in vertices}
    if len(distinct) < 3:
        raise _rejected("polygon", f"{label} needs at least 3 distinct vertices; got {len(distinct)}")

    for index, start in enumerate(vertices):
        end = vertices[(index + 1) % len(vertices)]
        if vector_angle(to_unit_vector(start), to_unit_vector(end)) > math.pi - 1e-12:
            raise _rejected("polygon", f"{label} has an edge between antipodal vertices")

    return tuple(vertices) + (vertices[0],)


def _check_holes(outer: Ring, holes: Tuple[Ring, ...], frame: GnomonicFrame) -> None:
    outer_plane = prepare_ring(outer, frame).plane
    outer_edges = _edges(outer_plane or ())

    hole_edges = []
    for index, hole in enumerate(holes):
        for vertex in hole[:-1]:
            if locate_in_ring(vertex, outer, frame) is RingPosition.OUTSIDE:
                raise _rejected(
                    "polygon",
                    f"hole {index} vertex ({vertex.latitude}, {vertex.longitude}) lies outside the outer ring",
                )

        plane = prepare_ring(hole, frame).plane
        if plane is None:
            raise _rejected("polygon", f"hole {index} extends beyond the outer ring's hemisphere")
        edges = _edges(plane)
        if any(segments_cross(*edge, *other) for edge in edges for other in outer_edges):
            raise _rejected("polygon", f"hole {index} crosses the outer ring")
        hole_edges.append(edges)

    for (first, ring_a), (second, ring_b) in combinations(enumerate(holes), 2):
        if any(segments_touch(*edge, *other) for edge in hole_edges[first] for other in hole_edges[second]):
            raise _rejected("polygon", f"holes {first} and {second} intersect")
        if (
            locate_in_ring(ring_a[0], ring_b, frame) is RingPosition.INSIDE
            or locate_in_ring(ring_b[0], ring_a, frame) is RingPosition.INSIDE
        ):
            raise _rejected("polygon", f"holes {first} and {second} overlap")


def _edges(plane: Sequence[Tuple[float, float]]) -> List[Tuple[Tuple[float, float], Tuple[float, float]]]:
    return [(plane[index], plane[(index + 1) % len(plane)]) for index in range(len(plane))]


def _vertex(value: CoordinateLike, label: str) -> Coordinate:
    try:
        return coerce_coordinate(value)
    except InvalidCoordinate as exc:
        raise InvalidRegion(f"{label}: {exc}") from exc


def _rejected(kind: str, reason: str) -> InvalidRegion:
    logger.debug("region_rejected", extra={"event": "region_rejected", "region_kind": kind, "reason": reason})
    return InvalidRegion(f"Invalid {kind}: {reason}")


def _describe(exc: ValidationError) -> str:
    return "; ".join(error["msg"] for error in exc.errors())

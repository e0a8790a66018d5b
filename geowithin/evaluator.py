"""Containment evaluation: does a region contain a coordinate?

Conventions
-----------
* Regions are closed: points on the boundary are contained.
* Box edges follow constant latitude and longitude lines. A box whose right
  longitude is below its left longitude wraps the antimeridian.
* Circle membership uses the haversine angular distance, with ``tolerance``
  radians of slack so points built exactly on the circle are contained.
* Polygon edges are great-circle arcs. The outer ring is projected
  gnomonically about a centre whose open hemisphere holds every vertex, which
  turns arcs into straight segments; the even-odd rule then applies to the
  outer ring and every hole alike, so winding order never matters. Hole
  boundaries belong to the polygon.
"""

from __future__ import annotations

import math
from enum import Enum
from functools import lru_cache
from typing import NamedTuple, NoReturn, Optional, Tuple

from .datatypes import Box, Circle, Coordinate, Polygon, Region, Ring
from .errors import RegionInvariantError
from .geo import (
    BOUNDARY_EPSILON_RAD,
    GnomonicFrame,
    PlanePoint,
    Vector,
    angular_distance,
    hemisphere_center,
    point_in_ring,
    point_on_arc,
    to_unit_vector,
)
from .logging_utils import get_logger

logger = get_logger("geowithin.evaluator")


class RingPosition(str, Enum):
    """Where a point sits relative to a single ring."""

    INSIDE = "inside"
    BOUNDARY = "boundary"
    OUTSIDE = "outside"


class PreparedRing(NamedTuple):
    vectors: Tuple[Vector, ...]
    plane: Optional[Tuple[PlanePoint, ...]]


def contains(
    region: Region,
    point: Coordinate,
    *,
    tolerance: float = BOUNDARY_EPSILON_RAD,
) -> bool:
    """Return True if ``point`` lies inside or on the boundary of ``region``."""

    if isinstance(region, Box):
        return _box_contains(region, point)
    if isinstance(region, Circle):
        return _circle_contains(region, point, tolerance)
    if isinstance(region, Polygon):
        return _polygon_contains(region, point, tolerance)
    _invariant_violation(region, f"unsupported region type {type(region).__name__}")


def _box_contains(box: Box, point: Coordinate) -> bool:
    bottom, left = box.bottom_left.latitude, box.bottom_left.longitude
    top, right = box.top_right.latitude, box.top_right.longitude
    if top < bottom:
        _invariant_violation(box, "box top latitude lies below its bottom latitude")

    if not bottom <= point.latitude <= top:
        return False

    # -180 and 180 name the same meridian.
    longitudes = {point.longitude}
    if abs(point.longitude) == 180:
        longitudes.update((-180.0, 180.0))
    return any(_longitude_in_span(lon, left, right) for lon in longitudes)


def _longitude_in_span(longitude: float, left: float, right: float) -> bool:
    if right < left:
        return longitude >= left or longitude <= right
    return left <= longitude <= right


def _circle_contains(circle: Circle, point: Coordinate, tolerance: float) -> bool:
    if not math.isfinite(circle.radius) or circle.radius <= 0:
        _invariant_violation(circle, f"circle radius {circle.radius!r} is not a positive angle")
    return angular_distance(circle.center, point) <= circle.radius + tolerance


def _polygon_contains(polygon: Polygon, point: Coordinate, tolerance: float) -> bool:
    _require_ring(polygon, polygon.outer_ring, "outer ring")
    for hole in polygon.holes:
        _require_ring(polygon, hole, "hole")

    frame = ring_frame(polygon.outer_ring)
    if frame is None:
        _invariant_violation(polygon, "outer ring does not fit within a single hemisphere")

    position = locate_in_ring(point, polygon.outer_ring, frame, tolerance)
    if position is RingPosition.OUTSIDE:
        return False
    if position is RingPosition.BOUNDARY:
        return True

    for hole in polygon.holes:
        if locate_in_ring(point, hole, frame, tolerance) is RingPosition.INSIDE:
            return False
    return True


def _require_ring(polygon: Polygon, ring: Ring, label: str) -> None:
    if len(ring) < 4:
        _invariant_violation(polygon, f"{label} has {len(ring)} vertices; at least 4 (closed) required")
    if ring[0] != ring[-1]:
        _invariant_violation(polygon, f"{label} is not closed")


@lru_cache(maxsize=256)
def ring_frame(ring: Ring) -> Optional[GnomonicFrame]:
    """Projection frame for a closed ring, or None if no hemisphere holds all its vertices."""

    center = hemisphere_center([to_unit_vector(vertex) for vertex in ring[:-1]])
    if center is None:
        return None
    return GnomonicFrame.at(center)


@lru_cache(maxsize=1024)
def prepare_ring(ring: Ring, frame: GnomonicFrame) -> PreparedRing:
    """Unit vectors and plane projection of an open view of ``ring``."""

    vectors = tuple(to_unit_vector(vertex) for vertex in ring[:-1])
    projected = [frame.project(vector) for vector in vectors]
    if any(point is None for point in projected):
        return PreparedRing(vectors=vectors, plane=None)
    return PreparedRing(vectors=vectors, plane=tuple(projected))  # type: ignore[arg-type]


def locate_in_ring(
    point: Coordinate,
    ring: Ring,
    frame: GnomonicFrame,
    tolerance: float = BOUNDARY_EPSILON_RAD,
) -> RingPosition:
    """Classify ``point`` against one closed ring using great-circle edges."""

    prepared = prepare_ring(ring, frame)
    target = to_unit_vector(point)

    vectors = prepared.vectors
    for index, start in enumerate(vectors):
        end = vectors[(index + 1) % len(vectors)]
        if point_on_arc(target, start, end, tolerance):
            return RingPosition.BOUNDARY

    if prepared.plane is None:
        raise RegionInvariantError("ring extends beyond the hemisphere of its projection frame")

    projected = frame.project(target)
    if projected is None:
        return RingPosition.OUTSIDE
    if point_in_ring(projected, prepared.plane):
        return RingPosition.INSIDE
    return RingPosition.OUTSIDE


def _invariant_violation(region: object, reason: str) -> NoReturn:
    kind = getattr(region, "kind", None)
    logger.error(
        "region_invariant_violation",
        extra={
            "event": "region_invariant_violation",
            "region_kind": getattr(kind, "value", kind),
            "reason": reason,
        },
    )
    raise RegionInvariantError(reason)

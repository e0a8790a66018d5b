"""Spherical and planar geometry helpers shared by the builders and the evaluator."""

from __future__ import annotations

import math
from math import asin, atan2, cos, radians, sin, sqrt
from typing import NamedTuple, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

from .datatypes import Coordinate
from .errors import InvalidDistance

EARTH_RADIUS_M = 6_378_100.0
METERS_PER_MILE = 1_609.344
BOUNDARY_EPSILON_RAD = 1e-9

_HEMISPHERE_MARGIN = 1e-12
_MAX_HEMISPHERE_ITERATIONS = 10_000

Vector = Tuple[float, float, float]
PlanePoint = Tuple[float, float]


class Distance(BaseModel):
    """Great-circle distance held as an angle in radians."""

    model_config = ConfigDict(frozen=True)

    radians: float

    @field_validator("radians")
    @classmethod
    def _validate_radians(cls, value: float) -> float:  # noqa: D401, N805
        """Ensure the distance is finite and non-negative."""
        if not math.isfinite(value) or value < 0:
            msg = f"Distance must be a non-negative number of radians; got {value}"
            raise ValueError(msg)
        return value

    @classmethod
    def from_radians(cls, value: float) -> "Distance":
        return cls(radians=_non_negative(value, "radians"))

    @classmethod
    def from_kilometers(cls, kilometers: float) -> "Distance":
        meters = _non_negative(kilometers, "kilometers") * 1000
        return cls(radians=meters / EARTH_RADIUS_M)

    @classmethod
    def from_miles(cls, miles: float) -> "Distance":
        """Build a distance from statute miles (1 mile = 1.609344 km)."""
        meters = _non_negative(miles, "miles") * METERS_PER_MILE
        return cls(radians=meters / EARTH_RADIUS_M)

    @property
    def as_kilometers(self) -> float:
        return self.radians * EARTH_RADIUS_M / 1000

    @property
    def as_miles(self) -> float:
        return self.radians * EARTH_RADIUS_M / METERS_PER_MILE


def _non_negative(value: float, unit: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidDistance(f"Distance in {unit} must be a number; got {value!r}") from exc
    if not math.isfinite(number) or number < 0:
        raise InvalidDistance(f"Distance in {unit} must be finite and non-negative; got {value!r}")
    return number


def angular_distance(a: Coordinate, b: Coordinate) -> float:
    """Great-circle angle between two coordinates in radians (haversine)."""

    lat1 = radians(a.latitude)
    lat2 = radians(b.latitude)
    dlat = lat2 - lat1
    dlon = radians(b.longitude - a.longitude)

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    return 2 * asin(sqrt(min(1.0, max(0.0, h))))


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """Compute distance between two coordinates in kilometres."""

    return angular_distance(a, b) * EARTH_RADIUS_M / 1000


def to_unit_vector(coordinate: Coordinate) -> Vector:
    """Map a coordinate onto the unit sphere (x towards 0°E, z towards the north pole)."""

    lat = radians(coordinate.latitude)
    lon = radians(coordinate.longitude)
    return (cos(lat) * cos(lon), cos(lat) * sin(lon), sin(lat))


def dot(a: Vector, b: Vector) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def cross(a: Vector, b: Vector) -> Vector:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def norm(a: Vector) -> float:
    return sqrt(dot(a, a))


def normalize(a: Vector) -> Vector:
    length = norm(a)
    return (a[0] / length, a[1] / length, a[2] / length)


def vector_angle(a: Vector, b: Vector) -> float:
    """Angle between two vectors; atan2 form stays accurate for tiny angles."""

    return atan2(norm(cross(a, b)), dot(a, b))


def point_on_arc(point: Vector, start: Vector, end: Vector, tolerance: float) -> bool:
    """Return True if ``point`` lies within ``tolerance`` radians of the minor arc start→end."""

    normal = cross(start, end)
    length = norm(normal)
    if length < 1e-15:
        # Degenerate arc collapses to a single vertex.
        return vector_angle(point, start) <= tolerance

    normal = (normal[0] / length, normal[1] / length, normal[2] / length)
    if abs(dot(point, normal)) > tolerance:
        return False

    return dot(cross(start, point), normal) >= -tolerance and dot(cross(point, end), normal) >= -tolerance


def hemisphere_center(vectors: Sequence[Vector]) -> Optional[Vector]:
    """Find a direction whose open hemisphere contains every vector.

    Starts from the vertex mean and applies perceptron updates with the
    worst-placed vertex. Returns None when no such hemisphere is found.
    """

    if not vectors:
        return None

    w = (
        sum(v[0] for v in vectors),
        sum(v[1] for v in vectors),
        sum(v[2] for v in vectors),
    )
    if norm(w) < 1e-12:
        w = vectors[0]

    for _ in range(_MAX_HEMISPHERE_ITERATIONS):
        length = norm(w)
        if length < 1e-12:
            return None
        worst = min(vectors, key=lambda v: dot(v, w))
        if dot(worst, w) / length > _HEMISPHERE_MARGIN:
            return normalize(w)
        w = (w[0] + worst[0], w[1] + worst[1], w[2] + worst[2])

    return None


class GnomonicFrame(NamedTuple):
    """Tangent plane at ``center``; great circles project to straight lines."""

    center: Vector
    east: Vector
    north: Vector

    @classmethod
    def at(cls, center: Vector) -> "GnomonicFrame":
        axis: Vector = (0.0, 0.0, 1.0) if abs(center[2]) < 0.9 else (1.0, 0.0, 0.0)
        east = normalize(cross(axis, center))
        north = cross(center, east)
        return cls(center=center, east=east, north=north)

    def project(self, vector: Vector) -> Optional[PlanePoint]:
        """Project onto the tangent plane, or None for the far hemisphere."""
        depth = dot(vector, self.center)
        if depth <= 0:
            return None
        return (dot(vector, self.east) / depth, dot(vector, self.north) / depth)


def point_in_ring(point: PlanePoint, ring: Sequence[PlanePoint]) -> bool:
    """Even-odd ray casting test in the projection plane; ``ring`` is open (no repeated vertex)."""

    x, y = point
    inside = False
    j = len(ring) - 1
    for i, (xi, yi) in enumerate(ring):
        xj, yj = ring[j]

        if (yi > y) != (yj > y):
            intersection_x = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < intersection_x:
                inside = not inside
        j = i

    return inside


def _orientation(a: PlanePoint, b: PlanePoint, c: PlanePoint) -> float:
    return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])


def _within_bounds(a: PlanePoint, b: PlanePoint, c: PlanePoint) -> bool:
    return min(a[0], b[0]) <= c[0] <= max(a[0], b[0]) and min(a[1], b[1]) <= c[1] <= max(a[1], b[1])


def segments_cross(p1: PlanePoint, p2: PlanePoint, q1: PlanePoint, q2: PlanePoint) -> bool:
    """True when the segments cross at a single interior point of both."""

    o1 = _orientation(p1, p2, q1)
    o2 = _orientation(p1, p2, q2)
    o3 = _orientation(q1, q2, p1)
    o4 = _orientation(q1, q2, p2)
    return o1 * o2 < 0 and o3 * o4 < 0


def segments_touch(p1: PlanePoint, p2: PlanePoint, q1: PlanePoint, q2: PlanePoint) -> bool:
    """True when the segments share any point, endpoints and collinear overlap included."""

    if segments_cross(p1, p2, q1, q2):
        return True

    for a, b, c in ((p1, p2, q1), (p1, p2, q2), (q1, q2, p1), (q1, q2, p2)):
        if _orientation(a, b, c) == 0 and _within_bounds(a, b, c):
            return True
    return False

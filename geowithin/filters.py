"""Apply a region as a per-record predicate."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from .builders import make_coordinate
from .datatypes import Coordinate, Region
from .errors import InvalidCoordinate
from .evaluator import contains
from .geo import BOUNDARY_EPSILON_RAD
from .logging_utils import get_logger

logger = get_logger("geowithin.filters")

RecordType = Dict[str, Any]

_EMBEDDED_KEYS = ("location", "geometry", "geo", "point")
_FLAT_KEYS = (
    ("lat", "lng"),
    ("latitude", "longitude"),
    ("Latitude", "Longitude"),
    ("y", "x"),
    ("Y", "X"),
)


def filter_within(
    records: Iterable[RecordType],
    region: Region,
    *,
    tolerance: float = BOUNDARY_EPSILON_RAD,
) -> List[RecordType]:
    """Return the records whose location lies inside ``region``.

    Records without a usable location never match.
    """

    matched: List[RecordType] = []
    skipped = 0
    for record in records:
        location = extract_location(record)
        if location is None:
            skipped += 1
            continue
        if contains(region, location, tolerance=tolerance):
            matched.append(record)

    if skipped:
        logger.debug(
            "records_without_location",
            extra={"event": "records_without_location", "skipped": skipped, "region_kind": region.kind.value},
        )
    return matched


def extract_location(record: Mapping[str, Any]) -> Optional[Coordinate]:
    """Read a coordinate from an embedded GeoJSON Point or flat lat/lng keys."""

    if not isinstance(record, Mapping):
        return None

    for key in _EMBEDDED_KEYS:
        value = record.get(key)
        if isinstance(value, Mapping) and "coordinates" in value:
            return _geojson_point(value)

    for lat_key, lng_key in _FLAT_KEYS:
        if lat_key in record and lng_key in record:
            return _safe_coordinate(record[lat_key], record[lng_key])

    return None


def _geojson_point(value: Mapping[str, Any]) -> Optional[Coordinate]:
    # Only points can be tested; any other geometry type is not a location.
    if value.get("type") != "Point":
        return None

    coordinates = value.get("coordinates")
    if isinstance(coordinates, (list, tuple)) and len(coordinates) >= 2:
        return _safe_coordinate(coordinates[1], coordinates[0])
    return None


def _safe_coordinate(lat: Any, lng: Any) -> Optional[Coordinate]:
    try:
        return make_coordinate(lat, lng)
    except InvalidCoordinate:
        return None

"""Geospatial query regions and the containment evaluator."""

from .builders import (
    build_box,
    build_box_from_edges,
    build_circle,
    build_polygon,
    coerce_coordinate,
    make_coordinate,
)
from .datatypes import Box, Circle, Coordinate, Polygon, Region, RegionKind
from .errors import (
    GeoWithinError,
    InvalidCoordinate,
    InvalidDistance,
    InvalidRegion,
    RegionInvariantError,
)
from .evaluator import contains
from .filters import extract_location, filter_within
from .geo import Distance, angular_distance, haversine_km
from .serialization import region_from_mapping, region_to_dict, region_to_geojson

__all__ = [
    "Box",
    "Circle",
    "Coordinate",
    "Polygon",
    "Region",
    "RegionKind",
    "Distance",
    "make_coordinate",
    "coerce_coordinate",
    "build_box",
    "build_box_from_edges",
    "build_circle",
    "build_polygon",
    "contains",
    "filter_within",
    "extract_location",
    "angular_distance",
    "haversine_km",
    "region_to_dict",
    "region_from_mapping",
    "region_to_geojson",
    "GeoWithinError",
    "InvalidCoordinate",
    "InvalidDistance",
    "InvalidRegion",
    "RegionInvariantError",
]

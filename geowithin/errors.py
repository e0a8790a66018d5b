"""Exception types raised by the region builders and the containment evaluator."""

from __future__ import annotations


class GeoWithinError(Exception):
    """Base error for the geowithin package."""


class InvalidCoordinate(GeoWithinError, ValueError):
    """Raised when a latitude/longitude pair is non-finite or out of range."""


class InvalidRegion(GeoWithinError, ValueError):
    """Raised when raw input cannot be turned into a well-formed region."""


class InvalidDistance(GeoWithinError, ValueError):
    """Raised when a distance is negative or not a finite number."""


class RegionInvariantError(GeoWithinError, RuntimeError):
    """Raised by the evaluator when a region is structurally malformed.

    Regions produced by the builders never trigger this; seeing it means a
    region was assembled without validation (e.g. via ``model_construct``).
    """

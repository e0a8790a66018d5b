"""Typed models for query regions and runtime configuration."""

from __future__ import annotations

import math
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RegionKind(str, Enum):
    """Tag identifying the shape of a region."""

    BOX = "box"
    CIRCLE = "circle"
    POLYGON = "polygon"


class Coordinate(BaseModel):
    """Latitude/longitude pair in degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float

    @field_validator("latitude")
    @classmethod
    def _validate_latitude(cls, value: float) -> float:  # noqa: D401, N805
        """Ensure latitude is finite and within valid bounds."""
        if not math.isfinite(value) or not -90 <= value <= 90:
            msg = f"Latitude must be between -90 and 90 degrees; got {value}"
            raise ValueError(msg)
        return value

    @field_validator("longitude")
    @classmethod
    def _validate_longitude(cls, value: float) -> float:  # noqa: D401, N805
        """Ensure longitude is finite and within valid bounds."""
        if not math.isfinite(value) or not -180 <= value <= 180:
            msg = f"Longitude must be between -180 and 180 degrees; got {value}"
            raise ValueError(msg)
        return value

    def as_tuple(self) -> tuple[float, float]:
        """Return the coordinate as (latitude, longitude)."""
        return (self.latitude, self.longitude)


Ring = Tuple[Coordinate, ...]


class Box(BaseModel):
    """Latitude/longitude aligned box.

    ``top_right.longitude`` numerically below ``bottom_left.longitude`` is a
    valid box that wraps across the antimeridian: its longitude span is
    ``[left, 180] ∪ [-180, right]``.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal[RegionKind.BOX] = RegionKind.BOX
    bottom_left: Coordinate
    top_right: Coordinate

    @model_validator(mode="after")
    def _validate_corners(self) -> "Box":  # noqa: D401
        """Ensure the bottom edge does not lie above the top edge."""
        if self.top_right.latitude < self.bottom_left.latitude:
            msg = "top latitude must be greater than or equal to bottom latitude"
            raise ValueError(msg)
        return self

    @property
    def crosses_antimeridian(self) -> bool:
        return self.top_right.longitude < self.bottom_left.longitude

    def as_edges(self) -> tuple[float, float, float, float]:
        """Return the box as (top, left, bottom, right)."""
        return (
            self.top_right.latitude,
            self.bottom_left.longitude,
            self.bottom_left.latitude,
            self.top_right.longitude,
        )


class Circle(BaseModel):
    """Spherical cap: every point within ``radius`` radians of ``center``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[RegionKind.CIRCLE] = RegionKind.CIRCLE
    center: Coordinate
    radius: float

    @field_validator("radius")
    @classmethod
    def _validate_radius(cls, value: float) -> float:  # noqa: D401, N805
        """Ensure the radius is a positive angle no larger than pi."""
        if not math.isfinite(value) or not 0 < value <= math.pi:
            msg = f"Radius must be greater than 0 and at most pi radians; got {value}"
            raise ValueError(msg)
        return value


class Polygon(BaseModel):
    """Polygon with great-circle edges, stored as closed rings."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[RegionKind.POLYGON] = RegionKind.POLYGON
    outer_ring: Ring
    holes: Tuple[Ring, ...] = ()

    @model_validator(mode="after")
    def _validate_rings(self) -> "Polygon":  # noqa: D401
        """Ensure every ring is closed and has at least three vertices."""
        for ring in (self.outer_ring, *self.holes):
            if len(ring) < 4:
                raise ValueError("rings need at least three vertices plus the closing vertex")
            if ring[0] != ring[-1]:
                raise ValueError("rings must be closed (first vertex repeated at the end)")
        return self


Region = Annotated[Union[Box, Circle, Polygon], Field(discriminator="kind")]


class ResolvedConfig(BaseModel):
    """Runtime configuration resolved from CLI/env/defaults."""

    model_config = ConfigDict(frozen=True)

    presets_path: Path
    log_level: str
    host: str
    port: int
    tolerance_rad: float
    region: Optional[str] = None
    point: Optional[Coordinate] = None
    raw_cli: Dict[str, Any] = Field(default_factory=dict)
    raw_env: Dict[str, Any] = Field(default_factory=dict)

    def redacted_dict(self) -> Dict[str, Any]:
        """Return a sanitized dict for logging."""
        return {
            "presets_path": str(self.presets_path),
            "log_level": self.log_level,
            "host": self.host,
            "port": self.port,
            "tolerance_rad": self.tolerance_rad,
            "region": self.region,
            "point": self.point.as_tuple() if self.point else None,
        }

"""FastAPI service surface and runtime state helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .datatypes import Coordinate, Region, ResolvedConfig
from .errors import GeoWithinError
from .evaluator import contains
from .geo import BOUNDARY_EPSILON_RAD
from .logging_utils import get_logger
from .serialization import region_from_mapping, region_to_dict, region_to_geojson

app = FastAPI(title="geowithin", version="0.1.0")

logger = get_logger("geowithin.service")


class PresetContainsRequest(BaseModel):
    points: List[Coordinate]


class InlineContainsRequest(BaseModel):
    region: Dict[str, Any]
    points: List[Coordinate]


@dataclass
class ServiceState:
    """Holds the loaded presets and counters for API consumers."""

    regions: Dict[str, Region] = field(default_factory=dict)
    config: Optional[ResolvedConfig] = None
    points_checked: int = 0

    def set_config(self, config: ResolvedConfig) -> None:
        self.config = config

    def set_regions(self, regions: Dict[str, Region]) -> None:
        self.regions = dict(regions)

    def record_checks(self, count: int) -> None:
        self.points_checked += count

    @property
    def tolerance_rad(self) -> float:
        return self.config.tolerance_rad if self.config else BOUNDARY_EPSILON_RAD


def attach_state(state: ServiceState) -> None:
    """Attach the runtime state to the FastAPI app."""

    app.state.runtime = state


def get_state() -> Optional[ServiceState]:
    """Return the attached runtime state if available."""

    return getattr(app.state, "runtime", None)


def _require_state() -> ServiceState:
    state = get_state()
    if state is None:
        raise HTTPException(status_code=503, detail="Service state not initialised")
    return state


def _require_region(state: ServiceState, name: str) -> Region:
    region = state.regions.get(name.lower())
    if region is None:
        raise HTTPException(status_code=404, detail=f"Region preset '{name}' was not found")
    return region


def _evaluate(state: ServiceState, region: Region, points: List[Coordinate]) -> List[bool]:
    results = [contains(region, point, tolerance=state.tolerance_rad) for point in points]
    state.record_checks(len(results))
    return results


@app.get("/healthz")
async def healthz() -> dict[str, object]:
    """Return service health and the number of loaded presets."""

    state = get_state()
    payload: Dict[str, object] = {"status": "initializing"}

    if state and state.regions:
        payload.update(
            {
                "status": "ok",
                "regions": len(state.regions),
                "points_checked": state.points_checked,
            }
        )

    return payload


@app.get("/regions")
async def list_regions() -> dict[str, object]:
    """Return every loaded region preset."""

    state = _require_state()
    return {"regions": {name: region_to_dict(region) for name, region in sorted(state.regions.items())}}


@app.get("/regions/{name}")
async def get_region(name: str) -> dict[str, object]:
    """Return one preset as a plain mapping and as GeoJSON."""

    state = _require_state()
    region = _require_region(state, name)
    return {"region": region_to_dict(region), "geojson": region_to_geojson(region)}


@app.post("/regions/{name}/contains")
async def preset_contains(name: str, request: PresetContainsRequest) -> dict[str, object]:
    """Test each point against a named preset."""

    state = _require_state()
    region = _require_region(state, name)
    return {"region": name.lower(), "results": _evaluate(state, region, request.points)}


@app.post("/contains")
async def inline_contains(request: InlineContainsRequest) -> dict[str, object]:
    """Build the region given in the request body and test each point against it."""

    state = _require_state()
    try:
        region = region_from_mapping(request.region)
    except GeoWithinError as exc:
        logger.info("region_rejected", extra={"event": "region_rejected", "error": str(exc)})
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return {"region": region_to_dict(region), "results": _evaluate(state, region, request.points)}

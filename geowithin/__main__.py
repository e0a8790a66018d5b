"""Entry point for running geowithin as a module."""

from __future__ import annotations

import json
import sys
from typing import Dict, Optional, Sequence

import uvicorn

from .config import load_presets, resolve_runtime_config
from .datatypes import Region, ResolvedConfig
from .evaluator import contains
from .logging_utils import configure_logging, get_logger, log_config_snapshot
from .serialization import region_to_dict
from .service import ServiceState, app as fastapi_app, attach_state


def check_point(config: ResolvedConfig, regions: Dict[str, Region]) -> int:
    """Evaluate the configured point against the configured preset and print the result."""

    region = regions.get(config.region or "")
    if region is None:
        available = ", ".join(sorted(regions))
        print(f"Region preset '{config.region}' was not found. Available presets: {available}", file=sys.stderr)
        return 2

    result = contains(region, config.point, tolerance=config.tolerance_rad)
    print(
        json.dumps(
            {
                "region": config.region,
                "point": {"latitude": config.point.latitude, "longitude": config.point.longitude},
                "contains": result,
                "shape": region_to_dict(region),
            }
        )
    )
    return 0


def _serve(config: ResolvedConfig, regions: Dict[str, Region]) -> None:
    logger = get_logger("geowithin.runtime")

    state = ServiceState()
    state.set_config(config)
    state.set_regions(regions)
    attach_state(state)

    logger.info(
        "service_starting",
        extra={"event": "service_starting", "host": config.host, "port": config.port, "regions": len(regions)},
    )
    try:
        uvicorn.run(fastapi_app, host=config.host, port=config.port, log_level=config.log_level.lower())
    except Exception as exc:  # pragma: no cover - defensive logging
        logger.exception("runtime_exception", extra={"event": "runtime_exception", "error": str(exc)})
        raise
    finally:
        logger.info("service_stopped", extra={"event": "service_stopped"})


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point."""

    config, _ = resolve_runtime_config(argv)
    configure_logging(config.log_level)
    log_config_snapshot(config)

    regions = load_presets(config.presets_path)
    if config.point is not None:
        return check_point(config, regions)

    _serve(config, regions)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

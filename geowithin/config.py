"""Configuration assembly for the geowithin service and CLI."""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional, Sequence, Tuple

import yaml

from .builders import make_coordinate
from .datatypes import Coordinate, Region, ResolvedConfig
from .errors import GeoWithinError, InvalidCoordinate
from .geo import BOUNDARY_EPSILON_RAD
from .serialization import region_from_mapping

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
DEFAULT_PRESETS_FILE = PROJECT_ROOT / "presets" / "regions.yml"

DEFAULTS: Dict[str, Any] = {
    "presets_path": DEFAULT_PRESETS_FILE,
    "log_level": "INFO",
    "host": "127.0.0.1",
    "port": 8000,
    "tolerance_rad": BOUNDARY_EPSILON_RAD,
}

FALLBACK_PRESETS: Dict[str, Dict[str, Any]] = {
    "null_island": {"kind": "box", "top": 1.0, "left": -1.0, "bottom": -1.0, "right": 1.0},
}

ENV_CASTERS: Dict[str, Any] = {
    "GEOWITHIN_PRESETS_FILE": str,
    "GEOWITHIN_LOG_LEVEL": str,
    "GEOWITHIN_HOST": str,
    "GEOWITHIN_PORT": int,
    "GEOWITHIN_TOLERANCE_RAD": float,
}


def parse_point(value: str) -> Coordinate:
    """Parse ``"LAT,LON"`` into a coordinate (argparse type)."""

    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"Expected LAT,LON; got '{value}'")
    try:
        return make_coordinate(float(parts[0]), float(parts[1]))
    except (ValueError, InvalidCoordinate) as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_cli() -> argparse.ArgumentParser:
    """Construct the top-level CLI."""

    parser = argparse.ArgumentParser(description="Geospatial region containment service")

    parser.add_argument(
        "--region",
        type=str,
        help="Named region preset to test a point against",
    )
    parser.add_argument(
        "--point",
        type=parse_point,
        help="Point to test, as LAT,LON in degrees (requires --region)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="Logging level for the structured logger",
    )
    parser.add_argument(
        "--host",
        type=str,
        help="Interface the HTTP service binds to",
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Port the HTTP service listens on",
    )
    parser.add_argument(
        "--tolerance-rad",
        type=float,
        help="Boundary tolerance in radians for circle and polygon tests",
    )
    parser.add_argument(
        "--env-file",
        type=str,
        default=None,
        help="Path to a .env file (defaults to project root .env)",
    )
    parser.add_argument(
        "--presets-file",
        type=str,
        default=None,
        help="Path to YAML file containing named region presets",
    )

    return parser


def load_presets(path: Optional[Path] = None) -> Dict[str, Region]:
    """Load region presets from YAML with Python fallback, validating each one."""

    effective_path = path or DEFAULT_PRESETS_FILE
    loaded: MutableMapping[str, Any] = {}
    if effective_path and effective_path.exists():
        content = effective_path.read_text(encoding="utf-8")
        data = yaml.safe_load(content) or {}
        if not isinstance(data, Mapping):
            raise ValueError("Presets file must contain a mapping of region names")
        loaded.update({str(key).lower(): value for key, value in data.items()})

    for key, value in FALLBACK_PRESETS.items():
        loaded.setdefault(key.lower(), value)

    regions: Dict[str, Region] = {}
    for name, value in loaded.items():
        try:
            regions[name] = region_from_mapping(value)
        except GeoWithinError as exc:
            raise ValueError(f"Region preset '{name}' is invalid: {exc}") from exc
    return regions


def load_env_file(path: Optional[Path]) -> Dict[str, str]:
    """Parse a dotenv-style file into a dictionary."""

    env: Dict[str, str] = {}
    if not path or not path.exists():
        return env

    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        env[key.strip()] = value.strip().strip("'\"")
    return env


def load_environment(env_path: Optional[Path] = None) -> Dict[str, str]:
    """Combine .env values with process environment variables."""

    combined = load_env_file(env_path)
    for key in ENV_CASTERS:
        if key in os.environ:
            combined[key] = os.environ[key]
    return combined


def normalise_environment(raw_env: Mapping[str, str]) -> Dict[str, Any]:
    """Coerce environment values to their expected Python types."""

    typed: Dict[str, Any] = {}
    for key, caster in ENV_CASTERS.items():
        if key not in raw_env:
            continue
        typed[key] = caster(raw_env[key])
    return typed


def _cli_or_env(
    cli_value: Any,
    env: Mapping[str, Any],
    env_key: str,
    default: Any,
) -> Any:
    """Resolution helper obeying CLI > env > default."""

    if cli_value is not None:
        return cli_value
    if env_key in env:
        return env[env_key]
    return default


def resolve_config(
    args: argparse.Namespace,
    env: Mapping[str, Any],
    presets_path: Optional[Path] = None,
) -> ResolvedConfig:
    """Build a ResolvedConfig using precedence rules."""

    cli_presets = getattr(args, "presets_file", None)
    effective_presets = Path(
        _cli_or_env(
            cli_presets,
            env,
            "GEOWITHIN_PRESETS_FILE",
            presets_path or DEFAULTS["presets_path"],
        )
    )

    log_level = str(
        _cli_or_env(getattr(args, "log_level", None), env, "GEOWITHIN_LOG_LEVEL", DEFAULTS["log_level"])
    ).upper()

    host = str(_cli_or_env(getattr(args, "host", None), env, "GEOWITHIN_HOST", DEFAULTS["host"]))

    port = int(_cli_or_env(getattr(args, "port", None), env, "GEOWITHIN_PORT", DEFAULTS["port"]))

    tolerance_rad = float(
        _cli_or_env(
            getattr(args, "tolerance_rad", None),
            env,
            "GEOWITHIN_TOLERANCE_RAD",
            DEFAULTS["tolerance_rad"],
        )
    )

    region = getattr(args, "region", None)
    point = getattr(args, "point", None)

    if not 0 < port < 65536:
        raise ValueError("port must be between 1 and 65535")
    if not 0 <= tolerance_rad < 1e-3:
        raise ValueError("tolerance_rad must be non-negative and below 1e-3 radians")
    if point is not None and region is None:
        raise ValueError("--point requires --region")

    raw_cli = {k: v for k, v in vars(args).items() if not k.startswith("_")}

    return ResolvedConfig(
        presets_path=effective_presets,
        log_level=log_level,
        host=host,
        port=port,
        tolerance_rad=tolerance_rad,
        region=region.lower() if region else None,
        point=point,
        raw_cli=raw_cli,
        raw_env=dict(env),
    )


def resolve_runtime_config(
    argv: Optional[Sequence[str]] = None,
    env_path: Optional[Path] = None,
    presets_path: Optional[Path] = None,
) -> Tuple[ResolvedConfig, argparse.Namespace]:
    """End-to-end configuration resolution helper."""

    parser = build_cli()
    args = parser.parse_args(argv)

    effective_env_path = env_path or (
        Path(getattr(args, "env_file")) if getattr(args, "env_file", None) else DEFAULT_ENV_FILE
    )
    raw_env = load_environment(effective_env_path)
    typed_env = normalise_environment(raw_env)

    config = resolve_config(args, typed_env, presets_path)
    return config, args

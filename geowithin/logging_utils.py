"""JSON logging for the CLI and the HTTP service."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from logging.config import dictConfig
from pathlib import Path
from typing import Any, Dict, FrozenSet

from .datatypes import ResolvedConfig

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRIBUTES: FrozenSet[str] = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


class JsonLogFormatter(logging.Formatter):
    """One JSON object per record: level, logger, event name and any extra fields."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRIBUTES
        )

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json, ensure_ascii=False)


def configure_logging(level: str = "INFO") -> None:
    """Send every record to stderr as JSON."""

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"json": {"()": JsonLogFormatter}},
            "handlers": {"stderr": {"class": "logging.StreamHandler", "formatter": "json"}},
            "root": {"handlers": ["stderr"], "level": level.upper()},
        }
    )


def get_logger(name: str = "geowithin") -> logging.Logger:
    return logging.getLogger(name)


def log_config_snapshot(config: ResolvedConfig) -> None:
    """Record the resolved settings at startup."""

    get_logger("geowithin.config").info(
        "resolved_config",
        extra={"event": "resolved_config", "config": config.redacted_dict()},
    )

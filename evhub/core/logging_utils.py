"""Logging setup and structured event helpers."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from .config import Settings, get_settings

_PLAIN_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "event_type"):
            log_data["event_type"] = record.event_type
        if hasattr(record, "event_data"):
            log_data.update(record.event_data)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


def configure_logging(settings: Settings | None = None) -> None:
    """Install a single stream handler on the root logger."""
    settings = settings or get_settings()
    handler = logging.StreamHandler()
    if settings.log_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT))
    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_evhub_handler", False):
            root.removeHandler(existing)
    handler._evhub_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(settings.log_level)


def log_event(logger: logging.Logger, event: str, message: str, *, level: int = logging.INFO, **fields: Any) -> None:
    """
    Log a domain event with structured fields.

    Args:
        logger: Logger instance
        event: Event name (e.g., "station_created", "ownership_denied")
        message: Human readable message
        level: Logging level
        **fields: Additional fields; None values are dropped
    """
    event_data = {key: value for key, value in fields.items() if value is not None}
    logger.log(level, message, extra={"event_type": event, "event_data": event_data})

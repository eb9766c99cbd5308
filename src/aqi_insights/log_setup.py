"""Structured console logging for the service and command line."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from .redaction import sanitize_for_logging, sanitize_text

LOGGER_NAME = "aqi_insights"

# Attributes callers may attach with ``extra=``; each lands as a top-level key.
STRUCTURED_FIELDS = ("operation", "config")


class JsonConsoleFormatter(logging.Formatter):
    """One JSON object per record, with credentials scrubbed from every field."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": sanitize_text(record.getMessage()),
        }
        for field in STRUCTURED_FIELDS:
            if hasattr(record, field):
                event[field] = sanitize_for_logging(getattr(record, field))
        if record.exc_info:
            event["exception"] = sanitize_text(self.formatException(record.exc_info))
        return json.dumps(event, default=str)


def setup_logger(name: str = LOGGER_NAME, level: int | str = logging.INFO) -> logging.Logger:
    """Configure the package logger once; later calls only adjust the level."""
    logger = logging.getLogger(name)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    logger.propagate = False
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(JsonConsoleFormatter())
    logger.addHandler(handler)
    return logger


def get_logger(suffix: str) -> logging.Logger:
    """Return a child of the package logger, e.g. ``aqi_insights.flows``."""
    return logging.getLogger(f"{LOGGER_NAME}.{suffix}")

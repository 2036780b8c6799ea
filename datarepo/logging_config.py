"""Logging setup for the ``datarepo`` logger tree.

Modules log through ``logging.getLogger(__name__)``; this only decides where
those records go and how they look.
"""
import json
import logging
import sys
from typing import Any, Dict, Optional

from .config import Settings, get_settings

LOGGER_NAME = "datarepo"
TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data)


def configure_logging(settings: Optional[Settings] = None, stream=None) -> logging.Logger:
    """Attach a single stream handler to the package logger (idempotent)."""
    settings = settings or get_settings()
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_datarepo", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler._datarepo = True  # type: ignore[attr-defined]
    if settings.log_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(settings.log_level)
    return logger

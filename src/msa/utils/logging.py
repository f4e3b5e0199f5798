"""Structured logging for the dashboard.

Loggers write to stdout, either as one JSON object per line or as plain
text, depending on ``settings.log_format``.  Structured fields can be
attached with ``logger.info(msg, extra={"fields": {...}})``; the JSON
formatter merges them into the emitted object.
"""

import logging
import json
import sys
from typing import Any, Dict, Optional

from ..config.settings import settings

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """Format logs as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            log_data.update(fields)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


def _make_handler(log_format: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    return handler


def get_logger(name: str) -> logging.Logger:
    """Return a logger configured from the global settings."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(_make_handler(settings.log_format))
        logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
        logger.propagate = False
    return logger


def configure_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Reconfigure every ``msa`` logger created so far.

    Used by the CLI to honour ``--log-level`` after modules have already
    created their loggers at import time.
    """
    level = (level or settings.log_level).upper()
    log_format = log_format or settings.log_format
    for name, logger in logging.Logger.manager.loggerDict.items():
        if not isinstance(logger, logging.Logger) or not name.startswith("msa"):
            continue
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.addHandler(_make_handler(log_format))
        logger.setLevel(getattr(logging, level, logging.INFO))

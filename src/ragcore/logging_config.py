"""Logging configuration for ragcore.

Modules log through ``logging.getLogger(__name__)``; everything hangs off the
``ragcore`` logger configured here. Console output goes through rich's
RichHandler on stderr, or through a JSON formatter for log aggregation.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

_ROOT = "ragcore"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with exception details when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": {
                "file": record.filename,
                "function": record.funcName,
                "line": record.lineno,
            },
        }
        if record.exc_info and record.exc_info[0] is not None:
            exc = record.exc_info[1]
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(exc) if exc else None,
                "traceback": self.formatException(record.exc_info),
            }
            to_dict = getattr(exc, "to_dict", None)
            if callable(to_dict):
                entry["error"] = to_dict()
        return json.dumps(entry, default=str)


def setup_logging(
    level: str = "WARNING",
    log_file: Path | None = None,
    json_format: bool = False,
) -> logging.Logger:
    """Configure the ``ragcore`` logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional file that receives the same records (UTF-8).
        json_format: Emit JSON lines instead of rich console output.

    Returns:
        The configured ``ragcore`` logger.
    """
    logger = logging.getLogger(_ROOT)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.handlers.clear()
    logger.propagate = False

    plain = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if json_format:
        console_handler: logging.Handler = logging.StreamHandler()
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        console_handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(JSONFormatter() if json_format else plain)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the ``ragcore`` logger or one of its children."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)

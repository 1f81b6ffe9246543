"""
Logging setup for the comma console script.

Reads two environment variables when no explicit values are passed:
- LOG_LEVEL: DEBUG, INFO, WARNING (default), ERROR, CRITICAL
- LOG_FORMAT: simple (default), detailed, json

Everything goes to stderr; stdout carries the generated message and prompts.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional, TextIO

DEFAULT_LEVEL = "WARNING"
DEFAULT_FORMAT = "simple"

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_TEXT_FORMATS = {
    "simple": ("%(levelname)s: %(message)s", None),
    "detailed": (
        "%(asctime)s %(levelname)-8s [%(name)s:%(lineno)d] %(message)s",
        "%Y-%m-%d %H:%M:%S",
    ),
}

# HTTP, SDK and git chatter is only useful when debugging those libraries
QUIET_LOGGERS = ("httpx", "httpcore", "anthropic", "git", "asyncio")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with a UTC timestamp."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _build_formatter(format_style: str) -> logging.Formatter:
    if format_style == "json":
        return JSONFormatter()
    fmt, datefmt = _TEXT_FORMATS.get(format_style, _TEXT_FORMATS[DEFAULT_FORMAT])
    return logging.Formatter(fmt=fmt, datefmt=datefmt)


def configure_logging(
    level: Optional[str] = None,
    format_style: Optional[str] = None,
    stream: Optional[TextIO] = None
) -> None:
    """
    Install a single stderr handler on the root logger.

    Calling it again replaces the handler instead of adding another one.

    Args:
        level: Log level name. Defaults to LOG_LEVEL or WARNING.
        format_style: simple, detailed or json. Defaults to LOG_FORMAT or simple.
        stream: Output stream, stderr by default
    """
    log_level = (level or os.getenv("LOG_LEVEL") or DEFAULT_LEVEL).upper()
    if log_level not in LEVELS:
        sys.stderr.write(f"Unknown LOG_LEVEL '{log_level}', using {DEFAULT_LEVEL}\n")
        log_level = DEFAULT_LEVEL

    style = (format_style or os.getenv("LOG_FORMAT") or DEFAULT_FORMAT).lower()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(_build_formatter(style))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.debug(f"Logging configured (level={log_level}, format={style})")

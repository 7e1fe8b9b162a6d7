"""Logging configuration helpers for Authentic."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from logging.config import dictConfig
from typing import Any, Dict

_DEV_ENVIRONMENTS = frozenset({"local", "dev", "development", "test"})

_ANSI = {"red": "31", "yellow": "33", "green": "32", "cyan": "36"}

# First match wins, highest level first.
_LEVEL_COLORS = ((logging.ERROR, "red"), (logging.WARNING, "yellow"))

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

# Transport loggers used by httpx and supabase-py.
_QUIET_LOGGERS = ("httpx", "httpcore", "hpack")


def _environment() -> str:
    return os.getenv("AUTHENTIC_ENVIRONMENT", os.getenv("ENVIRONMENT", "development")).lower()


def _color_enabled() -> bool:
    flag = os.getenv("AUTHENTIC_LOG_COLOR")
    if flag:
        return flag == "1"
    return _environment() in _DEV_ENVIRONMENTS


def colorize(text: str, color: str = "red") -> str:
    code = _ANSI.get(color)
    if code is None or not _color_enabled():
        return text
    return f"\033[{code}m{text}\033[0m"


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {key: value for key, value in vars(record).items() if key not in _STANDARD_ATTRS}


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``extra=`` fields are kept as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_extras(record),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ColorTextFormatter(logging.Formatter):
    """Console formatter for local development."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        for threshold, color in _LEVEL_COLORS:
            if record.levelno >= threshold:
                return colorize(line, color)
        return line


def _logging_config(level: str, formatter: str) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": JsonFormatter},
            "text": {
                "()": ColorTextFormatter,
                "format": "%(asctime)s %(levelname)-7s %(name)s | %(message)s",
            },
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "level": level,
            }
        },
        "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
        "root": {"handlers": ["stderr"], "level": level},
    }


def configure_logging(level: str | None = None, log_format: str | None = None) -> None:
    """Configure root logging; arguments win over ``AUTHENTIC_LOG_LEVEL`` / ``AUTHENTIC_LOG_FORMAT``."""

    default_level = "DEBUG" if _environment() in _DEV_ENVIRONMENTS else "INFO"
    resolved_level = (level or os.getenv("AUTHENTIC_LOG_LEVEL") or default_level).upper()
    resolved_format = (log_format or os.getenv("AUTHENTIC_LOG_FORMAT") or "json").lower()
    formatter = "text" if resolved_format == "text" else "json"
    dictConfig(_logging_config(resolved_level, formatter))


__all__ = ["ColorTextFormatter", "JsonFormatter", "colorize", "configure_logging"]

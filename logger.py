"""
logger.py - Logging setup for the LearningWeb API.

Modules take a logger with `get_logger(__name__)` and attach structured
fields through `extra={"props": {...}}`:

    log.info("User registered", extra={"props": {"user_id": "65f0..."}})

LOG_LEVEL (default INFO) picks the threshold and LOG_FORMAT chooses between
`text` (default) and `json` lines. `log_requests` is the HTTP middleware that
writes one `http` line per request.
"""

import json
import logging
import os
import sys
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable

from fastapi import Request, Response

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", "text").lower()

# Chatty third-party loggers held at WARNING
QUIET_LOGGERS = ("pymongo", "uvicorn.access")


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, timezone.utc)


def _props(record: logging.LogRecord) -> dict:
    return getattr(record, "props", None) or {}


class TextFormatter(logging.Formatter):
    """One line per record, level colored when writing to a terminal.

        2026-02-21 13:00:12 | INFO     | http               | GET /api/courses | status=200 duration_ms=4.1
    """

    COLORS = {"DEBUG": 36, "INFO": 32, "WARNING": 33, "ERROR": 31, "CRITICAL": 35}

    def __init__(self, color: bool = False):
        super().__init__()
        self.color = color

    def _level(self, levelname: str) -> str:
        padded = levelname.ljust(8)
        code = self.COLORS.get(levelname)
        if not self.color or code is None:
            return padded
        return f"\033[{code}m{padded}\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            _record_time(record).strftime("%Y-%m-%d %H:%M:%S"),
            self._level(record.levelname),
            record.name.ljust(18)[:18],
            record.getMessage(),
        ]
        props = _props(record)
        if props:
            parts.append(" ".join(f"{k}={v}" for k, v in props.items()))
        line = " | ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class JsonFormatter(logging.Formatter):
    """JSON lines; props are merged into the top-level object."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": _record_time(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_props(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: str = LOG_LEVEL, fmt: str = LOG_FORMAT) -> None:
    """Attach the stdout handler to the root logger unless one is already set."""
    numeric_level = getattr(logging, level, logging.INFO)
    root = logging.getLogger()
    root.setLevel(numeric_level)

    if not root.handlers:
        stream = sys.stdout
        handler = logging.StreamHandler(stream)
        if fmt == "json":
            handler.setFormatter(JsonFormatter())
        else:
            handler.setFormatter(TextFormatter(color=stream.isatty()))
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


configure_logging()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


_http_log = get_logger("http")


async def log_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """HTTP middleware writing one line per request with status and timing."""
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - started) * 1000, 1)
    _http_log.info(
        f"{request.method} {request.url.path}",
        extra={"props": {"status": response.status_code, "duration_ms": duration_ms}},
    )
    return response

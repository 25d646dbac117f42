"""Structured logging utilities for the query log exporter."""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from time import perf_counter
from typing import Any

_STANDARD_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs", "pathname",
    "process", "processName", "relativeCreated", "stack_info",
    "exc_info", "exc_text", "thread", "threadName", "taskName",
    "message", "correlation_id", "color_message",
})


class JSONFormatter(logging.Formatter):
    """Render each log record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id:
            payload["correlation_id"] = correlation_id

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key.startswith("_"):
                continue
            if isinstance(value, datetime):
                payload[key] = value.isoformat()
            elif isinstance(value, (str, int, float, bool)) or value is None:
                payload[key] = value
            else:
                try:
                    json.dumps(value)
                    payload[key] = value
                except (TypeError, ValueError):
                    payload[key] = str(value)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class CorrelationIdFilter(logging.Filter):
    """Stamp the current extraction's correlation ID onto every record."""

    _correlation_id: str | None = None

    @classmethod
    def set_correlation_id(cls, correlation_id: str | None) -> None:
        cls._correlation_id = correlation_id

    @classmethod
    def generate_correlation_id(cls) -> str:
        correlation_id = str(uuid.uuid4())
        cls._correlation_id = correlation_id
        return correlation_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = self._correlation_id
        return True


TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Route all logging to stdout, as JSON lines or plain text."""
    level = level.upper()
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT))
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Every scrape would otherwise produce an access line
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _elapsed_ms(started: float) -> int:
    return int((perf_counter() - started) * 1000)


@contextmanager
def log_operation(logger: logging.Logger, operation: str, **context: Any):
    """Time one extraction stage; failures are logged at ERROR and re-raised."""
    started = perf_counter()
    logger.debug(f"Starting {operation}", extra={**context, "stage": operation})
    try:
        yield
    except Exception as e:
        logger.error(
            f"Failed {operation}",
            extra={**context, "stage": operation, "duration_ms": _elapsed_ms(started), "error": str(e)},
        )
        raise
    logger.debug(
        f"Completed {operation}",
        extra={**context, "stage": operation, "duration_ms": _elapsed_ms(started)},
    )

"""Structured JSON logging with trace_id support."""
from __future__ import annotations

import contextvars
import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

TRACE_HEADER = "X-Trace-ID"

# Context variable for trace_id
trace_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "trace_id", default=""
)

# Attributes passed through ``extra=`` that are copied into the JSON entry.
_CONTEXT_FIELDS: tuple[str, ...] = (
    "slug", "key", "session_id", "username",
    "method", "path", "status_code", "duration_ms",
)

access_logger = logging.getLogger("shared.access")


class JSONFormatter(logging.Formatter):
    """Custom JSON log formatter."""

    def __init__(self, service_name: str = "unknown") -> None:
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service_name": self.service_name,
            "logger": record.name,
            "trace_id": trace_id_var.get(""),
            "message": record.getMessage(),
        }
        for name in _CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = str(record.exc_info[1])
        return json.dumps(log_entry)


def setup_logging(service_name: str, level: str = "INFO") -> logging.Logger:
    """Configure structured JSON logging for a service.

    Child loggers (``catalog.repository`` etc.) propagate to the
    service logger configured here.

    Args:
        service_name: Name of the service for log entries.
        level: Log level string (e.g. "INFO", "DEBUG").

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(service_name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter(service_name=service_name))
    logger.addHandler(handler)

    return logger


class TraceIDMiddleware(BaseHTTPMiddleware):
    """Middleware that sets a trace_id per request.

    An incoming ``X-Trace-ID`` header is reused, otherwise a UUID4 is
    generated.  The id is echoed back on the response, and every
    completed request is logged to ``shared.access`` at DEBUG with its
    method, path, status and duration.
    """

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        request_trace_id = request.headers.get(TRACE_HEADER) or str(uuid.uuid4())
        token = trace_id_var.set(request_trace_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            access_logger.debug(
                "%s %s -> %d", request.method, request.url.path, response.status_code,
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
        finally:
            trace_id_var.reset(token)
        response.headers[TRACE_HEADER] = request_trace_id
        return response

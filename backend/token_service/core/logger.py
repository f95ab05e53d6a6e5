"""Structured logging configuration with request correlation."""

from __future__ import annotations

import contextlib
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from flask import Flask, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
REQUEST_ID_ENVIRON_KEY = "token_service.request_id"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")

# Attributes copied from ``extra=`` into the JSON payload when present
EXTRA_KEYS = ("endpoint", "elapsed_ms", "method", "path", "status", "user_id", "error_kind")


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON objects.

    :param app_name: Service name stamped on every record.
    :param include_traceback: Attach formatted ``exc_info`` when ``True``.
    """

    def __init__(self, *, app_name: str | None = None, include_traceback: bool = False) -> None:
        super().__init__()
        self.app_name = app_name
        self.include_traceback = include_traceback

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        if self.app_name:
            payload["app"] = self.app_name
        if record.levelno >= logging.ERROR:
            payload["location"] = f"{record.pathname}:{record.lineno}"
        if record.exc_info:
            if self.include_traceback:
                payload["exc_info"] = self.formatException(record.exc_info)
            elif record.exc_info[1] is not None:
                payload["error"] = repr(record.exc_info[1])
        for key in EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    """Ensure a ``request_id`` attribute is always present on log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def ensure_request_id() -> str:
    """Return the current request identifier, generating one when necessary.

    The value lives in the WSGI environ so it is scoped to a single request,
    even when several requests share one pushed application context.
    """

    if has_request_context():
        environ = request.environ
        request_id = environ.get(REQUEST_ID_ENVIRON_KEY)
        if request_id:
            return request_id
        for header in CORRELATION_HEADERS:
            value = request.headers.get(header)
            if value:
                request_id = value
                break
        else:
            request_id = str(uuid4())
        environ[REQUEST_ID_ENVIRON_KEY] = request_id
        return request_id
    return str(uuid4())


def configure_logging(
    level: str | int = "INFO",
    *,
    app_name: str | None = None,
    log_file: str | None = None,
    include_traceback: bool = False,
) -> logging.Logger:
    """Configure the root logger with JSON-formatted output.

    Records always go to stdout; ``log_file`` adds a second handler with the
    same formatting. Returns the configured root logger so callers can hand
    it (or a child) to the components they build.
    """

    formatter = JSONFormatter(app_name=app_name, include_traceback=include_traceback)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(RequestIdFilter())
        root.addHandler(handler)

    level_value: int | str = level
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level_value = resolved if isinstance(resolved, int) else level.upper()
    root.setLevel(level_value)
    return root


def shutdown_logging() -> None:
    """Flush and close every handler attached to the root logger.

    A handler whose stream is already gone does not stop the remaining ones
    from being flushed and closed.
    """

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        with contextlib.suppress(OSError, ValueError):
            handler.flush()
        with contextlib.suppress(OSError, ValueError):
            handler.close()


def init_app(app: Flask) -> None:
    """Inject request-id middleware and attach filters to the app logger."""

    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _seed_request_id() -> None:
        ensure_request_id()

    @app.after_request
    def _inject_response_header(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = [
    "JSONFormatter",
    "RequestIdFilter",
    "configure_logging",
    "ensure_request_id",
    "init_app",
    "shutdown_logging",
]

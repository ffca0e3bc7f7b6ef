"""JSON log lines tagged with the id of the request that produced them."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from flask import Flask, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = (REQUEST_ID_HEADER, "X-Correlation-ID")

# Lives on the WSGI environ so it is scoped to one request, not to ``g``
_ENVIRON_KEY = "authapi.request_id"

# Record attributes rendered when present; anything else passed as ``extra`` is dropped
EXTRA_KEYS = ("event", "user_id", "token_id", "reason", "endpoint", "elapsed_ms")


def ensure_request_id() -> str:
    """
    Id of the current request.

    Taken from the first inbound correlation header, else generated once per
    request. Outside a request every call yields a fresh uuid4.
    """
    if not has_request_context():
        return str(uuid4())
    environ = request.environ
    request_id = environ.get(_ENVIRON_KEY)
    if request_id is None:
        inbound = (request.headers.get(name) for name in CORRELATION_HEADERS)
        request_id = next((value for value in inbound if value), None) or str(uuid4())
        environ[_ENVIRON_KEY] = request_id
    return request_id


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record: time, level, logger, message, request id, known extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        payload.update({key: getattr(record, key) for key in EXTRA_KEYS if hasattr(record, key)})
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str | int = "INFO") -> None:
    """Replace root handlers with a single JSON stdout handler at ``level``."""

    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)


def init_app(app: Flask) -> None:
    """Tag ``app.logger`` records and echo the request id on every response."""

    app.logger.addFilter(RequestIdFilter())

    @app.after_request
    def _echo_request_id(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = ["configure_logging", "ensure_request_id", "init_app"]

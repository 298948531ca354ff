"""
JSON logging for session events, correlated by request id.

Session operations log through ``extra={...}``; the keys listed in
:data:`EXTRA_KEYS` become top-level JSON fields so a rejected refresh can be
traced by ``event``, ``reason`` and ``subject``. Token values never reach the
output: :class:`TokenRedactionFilter` masks anything shaped like a JWT or a
``Bearer`` credential before formatting.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")

# Client-supplied ids outside this shape are replaced by a fresh uuid4
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:\-]{1,128}$")

# Session-event attributes promoted from ``extra`` into the JSON payload
EXTRA_KEYS = (
    "endpoint",
    "elapsed_ms",
    "event",
    "subject",
    "reason",
    "operation",
    "backend",
)

REDACTED = "***REDACTED***"
_JWT_RE = re.compile(r"\beyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+")
_BEARER_RE = re.compile(r"(?i)\bBearer\s+[A-Za-z0-9_\-.=]+")


def redact_tokens(text: str) -> str:
    """Mask JWTs and ``Bearer`` credentials found in ``text``."""
    text = _BEARER_RE.sub(f"Bearer {REDACTED}", text)
    return _JWT_RE.sub(REDACTED, text)


class JSONFormatter(logging.Formatter):
    """Render log records as JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key in EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        return json.dumps(payload, default=str)


class TokenRedactionFilter(logging.Filter):
    """Rewrite the message and string extras of a record without token values."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact_tokens(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        for key in EXTRA_KEYS:
            value = getattr(record, key, None)
            if isinstance(value, str):
                setattr(record, key, redact_tokens(value))
        return True


class RequestIdFilter(logging.Filter):
    """Ensure a ``request_id`` attribute is always present on log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def ensure_request_id() -> str:
    """
    Return the id correlating this request's logs and problem responses.

    Reuses ``X-Request-ID`` (or ``X-Correlation-ID``) when the client sent a
    well-formed one, otherwise mints a uuid4. The id is cached on ``g``.
    """
    if not has_request_context():
        return str(uuid4())
    if hasattr(g, "request_id"):
        return g.request_id  # type: ignore[no-any-return]

    request_id = str(uuid4())
    for header in CORRELATION_HEADERS:
        value = request.headers.get(header, "").strip()
        if value and _REQUEST_ID_RE.match(value):
            request_id = value
            break
    g.request_id = request_id
    return request_id


def configure_logging(level: str | int = "INFO") -> None:
    """Send JSON lines to stdout at ``level`` (a name such as ``"INFO"`` or an int)."""

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(TokenRedactionFilter())
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(JSONFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    level_value: int | str = level
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level_value = resolved if isinstance(resolved, int) else level.upper()
    root.setLevel(level_value)


def init_app(app: Flask) -> None:
    """Seed the request id per request and echo it in ``X-Request-ID``."""

    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _seed_request_id() -> None:  # pragma: no cover - integration glue
        ensure_request_id()

    @app.after_request
    def _inject_response_header(response):  # pragma: no cover - integration glue
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = [
    "JSONFormatter",
    "TokenRedactionFilter",
    "configure_logging",
    "ensure_request_id",
    "init_app",
    "redact_tokens",
]

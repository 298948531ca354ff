"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request

from sessionauth.api.cookies import CookieDelivery
from sessionauth.core.extensions import get_codec, get_session_store
from sessionauth.core.logger import ensure_request_id
from sessionauth.services._shared.base import ServiceContext
from sessionauth.services._shared.errors import ServiceError
from sessionauth.services._shared.ports import TokenTTLs
from sessionauth.services.identity.service import IdentityService
from sessionauth.services.session.service import SessionService

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "Bearer "


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]


def get_cookie_delivery() -> CookieDelivery:
    """Return the cookie transport configured for the current app."""

    return CookieDelivery.from_config(current_app.config)


def get_session_service() -> SessionService:
    """Wire a :class:`SessionService` from the app-scoped codec and store."""

    ctx = ServiceContext(request_id=ensure_request_id())
    ttls = TokenTTLs(
        access=timedelta(seconds=int(current_app.config["ACCESS_TOKEN_TTL_SECONDS"])),
        refresh=timedelta(seconds=int(current_app.config["REFRESH_TOKEN_TTL_SECONDS"])),
    )
    return SessionService(
        codec=get_codec(),
        store=get_session_store(),
        identity=IdentityService(ctx=ctx),
        ttls=ttls,
        ctx=ctx,
    )


def read_access_token() -> str | None:
    """Return the access token from the cookie, else from a ``Bearer`` header."""

    token = get_cookie_delivery().read_access(request)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    if header.startswith(BEARER_PREFIX):
        return header[len(BEARER_PREFIX) :].strip() or None
    return None


def access_required(func: F) -> F:
    """Ensure the request carries a valid access token.

    The resolved public user is exposed as ``g.current_user``.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        service = get_session_service()
        try:
            g.current_user = service.current_user(read_access_token())
        except ServiceError as exc:
            raise service.translate_exceptions(exc) from exc
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]

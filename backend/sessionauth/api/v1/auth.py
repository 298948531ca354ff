"""Session endpoints: register, login, logout, refresh and the current user."""

from __future__ import annotations

from flask import Blueprint, Response, g, request

from sessionauth.api.deps import (
    access_required,
    get_cookie_delivery,
    get_session_service,
    json_response,
    timing,
)
from sessionauth.core.errors import Unauthorized, api_error_response
from sessionauth.schemas import LoginSchema, RegisterSchema, SessionSchema
from sessionauth.services._shared.errors import ServiceError, UnauthorizedError
from sessionauth.services.session.dto import (
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    SessionOut,
)

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
session_schema = SessionSchema()


def _session_response(out: SessionOut) -> Response:
    """Serialize ``out`` and attach or clear the token cookies."""

    body = session_schema.dump({"user": out.user, "authenticated": out.authenticated})
    response = json_response(body, status=out.status)
    cookies = get_cookie_delivery()
    if out.tokens is not None:
        cookies.attach(response, out.tokens)
    else:
        cookies.clear(response)
    return response


@bp.post("/register")
@timing
def register():
    """Create an account and open its session (201)."""

    data = register_schema.load(request.get_json(silent=True) or {})
    service = get_session_service()
    try:
        out = service.register(
            RegisterIn(
                username=data["username"],
                name=data["name"],
                email=data["email"],
                password=data["password"],
            )
        )
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc
    return _session_response(out)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and replace the user's session."""

    data = login_schema.load(request.get_json(silent=True) or {})
    service = get_session_service()
    try:
        out = service.login(LoginIn(username=data["username"], password=data["password"]))
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc
    return _session_response(out)


@bp.post("/logout")
@timing
def logout():
    """Revoke the refresh cookie's session and clear both cookies."""

    service = get_session_service()
    token = get_cookie_delivery().read_refresh(request)
    try:
        out = service.logout(LogoutIn(refresh_token=token))
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc
    return _session_response(out)


@bp.post("/refresh")
@timing
def refresh():
    """Rotate the refresh cookie and issue a new token pair.

    A rejected refresh ends the session: both cookies are cleared on the 401.
    """

    service = get_session_service()
    cookies = get_cookie_delivery()
    token = cookies.read_refresh(request)
    try:
        out = service.refresh(RefreshIn(refresh_token=token))
    except UnauthorizedError:
        response = api_error_response(Unauthorized())
        cookies.clear(response)
        return response
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc
    return _session_response(out)


@bp.get("/me")
@access_required
@timing
def me():
    """Return the user behind the access token."""

    return json_response(session_schema.dump({"user": g.current_user, "authenticated": True}))

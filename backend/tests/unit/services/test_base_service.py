"""Error translation from service errors to RFC 7807 API errors."""

from __future__ import annotations

import pytest
from sessionauth.core import errors as api_errors
from sessionauth.services._shared.base import BaseService
from sessionauth.services._shared.errors import (
    ConflictError,
    InvalidCredentialError,
    InvalidCredentialsError,
    NotFoundError,
    ServiceError,
    StoreUnavailableError,
    UnauthorizedError,
)


@pytest.fixture()
def service() -> BaseService:
    return BaseService()


def test_conflict_keeps_field(service):
    translated = service.translate_exceptions(ConflictError("User", "email", "Email already exists"))
    assert isinstance(translated, api_errors.Conflict)
    assert translated.status_code == 409
    assert translated.details == {"field": "email"}
    assert translated.message == "Email already exists"


@pytest.mark.parametrize(
    "exc",
    [
        InvalidCredentialsError("unknown_username"),
        InvalidCredentialsError("wrong_password"),
    ],
)
def test_login_failures_share_one_message(service, exc):
    translated = service.translate_exceptions(exc)
    assert isinstance(translated, api_errors.Unauthorized)
    assert translated.message == "Invalid credentials"


@pytest.mark.parametrize(
    "exc",
    [
        InvalidCredentialError("expired"),
        UnauthorizedError("stale_session"),
        UnauthorizedError("lost_rotation"),
    ],
)
def test_token_failures_are_generic_401(service, exc):
    translated = service.translate_exceptions(exc)
    assert isinstance(translated, api_errors.Unauthorized)
    assert translated.status_code == 401
    assert translated.message == "Unauthorized"
    assert translated.details == {}


def test_store_unavailable_maps_to_503(service):
    translated = service.translate_exceptions(StoreUnavailableError("rotate"))
    assert isinstance(translated, api_errors.ServiceUnavailable)
    assert translated.status_code == 503


def test_not_found_and_generic_errors(service):
    assert service.translate_exceptions(NotFoundError("User", 1)).status_code == 404
    assert service.translate_exceptions(ServiceError("boom")).status_code == 400


def test_foreign_exceptions_pass_through(service):
    exc = RuntimeError("x")
    assert service.translate_exceptions(exc) is exc

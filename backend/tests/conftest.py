"""Pytest fixtures building an isolated application per test.

Each test gets a fresh Flask app over an in-memory SQLite database (a single
shared connection) whose tables are created and dropped around the test.
"""

from __future__ import annotations

import os
from datetime import timedelta

import pytest
from sessionauth.core.config import TestingConfig
from sessionauth.core.extensions import db as _db
from sessionauth.core.extensions import get_codec, get_session_store
from sessionauth.factory import create_app
from sessionauth.services._shared.ports import InMemorySessionStore, TokenTTLs
from sessionauth.services.identity.service import IdentityService
from sessionauth.services.session.service import SessionService


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Keeps the SQL session store so HTTP tests exercise the real adapter.
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    CORS_ORIGINS = "http://localhost:5173"


@pytest.fixture()
def app():
    """Create a Flask application configured for testing.

    Yields
    ------
    flask.Flask
        Application with :class:`TestConfig` applied, inside an app context,
        with all tables created.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestConfig, instance_relative_config=False)
    app.logger.setLevel("WARNING")
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def session(app):
    """Return the Flask-scoped SQLAlchemy session bound to the test app."""
    return _db.session


@pytest.fixture()
def client(app):
    """Flask test client keeping cookies between requests."""
    return app.test_client()


@pytest.fixture()
def runner(app):
    """Click runner for the ``flask`` CLI commands."""
    return app.test_cli_runner()


@pytest.fixture()
def codec(app):
    """The JWT codec built by the application factory."""
    return get_codec()


@pytest.fixture()
def sql_store(app):
    """The SQL session store configured for the test app."""
    return get_session_store()


@pytest.fixture()
def memory_store():
    """A fresh in-memory session store."""
    return InMemorySessionStore()


@pytest.fixture()
def identity(app):
    """Identity provider backed by the ``users`` table."""
    return IdentityService()


@pytest.fixture()
def service(app, codec, memory_store, identity):
    """SessionService wired to the real codec and an in-memory store."""
    return SessionService(
        codec=codec,
        store=memory_store,
        identity=identity,
        ttls=TokenTTLs(access=timedelta(minutes=30), refresh=timedelta(minutes=60)),
    )


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to the app-scoped session ----------------------------
@pytest.fixture(autouse=True)
def _factories_session(request):
    """Wire Factory Boy's session helper when the test uses the app fixture."""
    from tests.factories import SQLAlchemySession

    if "app" in request.fixturenames:
        request.getfixturevalue("app")
        SQLAlchemySession.set(_db.session)
    yield
    SQLAlchemySession.set(None)

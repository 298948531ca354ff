"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING, cast

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

if TYPE_CHECKING:
    from sessionauth.services._shared.ports import CredentialCodec, SessionStore

log = logging.getLogger(__name__)

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
redis_client: redis.Redis | None = None

SESSION_STORE_BACKENDS = ("sql", "redis", "memory")


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, Redis, the credential codec and the session store.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. The codec is built here,
        once, so a missing or shared signing secret aborts start-up with
        :class:`~sessionauth.services._shared.errors.ConfigurationError`.
    """
    db.init_app(app)

    # Ensure models are imported so metadata is complete for create_all()
    from sessionauth import models as _models  # noqa: F401

    from sessionauth.infra.jwt.jwt_credential_codec import JWTCredentialCodec

    app.extensions["credential_codec"] = JWTCredentialCodec.from_config(app.config)
    app.extensions["session_store"] = _build_session_store(app)


def _build_session_store(app: Flask) -> SessionStore:
    """Instantiate the configured :class:`SessionStore` adapter."""
    from sessionauth.services._shared.errors import ConfigurationError

    backend = str(app.config.get("SESSION_STORE", "sql")).strip().lower()
    if backend not in SESSION_STORE_BACKENDS:
        raise ConfigurationError(
            "SESSION_STORE", f"expected one of {', '.join(SESSION_STORE_BACKENDS)}"
        )

    if backend == "memory":
        from sessionauth.services._shared.ports import InMemorySessionStore

        log.warning("Using the in-memory session store; sessions vanish on restart.")
        return InMemorySessionStore()

    if backend == "redis":
        from sessionauth.infra.redis.redis_session_store import RedisSessionStore

        client = _init_redis(app)
        ttl = timedelta(seconds=int(app.config["REFRESH_TOKEN_TTL_SECONDS"]))
        return RedisSessionStore(r=client, record_ttl=ttl)

    from sessionauth.infra.sql.sql_session_store import SqlSessionStore

    return SqlSessionStore()


def _init_redis(app: Flask) -> redis.Redis:
    """Connect the Redis client used by the ``redis`` session store."""
    from sessionauth.services._shared.errors import ConfigurationError

    global redis_client
    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        raise ConfigurationError("REDIS_URL", "required when SESSION_STORE=redis")

    redis_client = redis.Redis.from_url(redis_url)
    try:
        redis_client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
    app.extensions["redis_client"] = redis_client
    return redis_client


def get_codec() -> CredentialCodec:
    """Return the credential codec built at start-up."""
    return cast("CredentialCodec", current_app.extensions["credential_codec"])


def get_session_store() -> SessionStore:
    """Return the session store built at start-up."""
    return cast("SessionStore", current_app.extensions["session_store"])

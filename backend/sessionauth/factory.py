"""Application factory: config, token codec, session store, routes."""

from __future__ import annotations

import logging

from flask import Flask

from sessionauth.core.config import CONFIG_MAP, BaseConfig, get_config
from sessionauth.core.logger import configure_logging
from sessionauth.core.logger import init_app as init_logging

log = logging.getLogger(__name__)


def _resolve_config(config: str | type[BaseConfig] | object | None) -> object:
    """Map ``None`` to ``APP_ENV`` and environment names to their config class."""
    if config is None:
        return get_config()
    if isinstance(config, str) and config.strip().lower() in CONFIG_MAP:
        return CONFIG_MAP[config.strip().lower()]
    return config


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """
    Build the session service application.

    Parameters
    ----------
    config:
        A config class or object, an environment name (``"development"``,
        ``"testing"``, ``"production"``), an import path understood by
        :meth:`flask.Config.from_object`, or ``None`` to follow ``APP_ENV``.
    instance_relative_config:
        Whether ``instance_config_filename`` may override settings.
    instance_config_filename:
        File under the instance folder loaded after ``config``.

    Raises
    ------
    ConfigurationError
        When the signing secrets, the algorithm or the session-store backend
        are unusable. Nothing is served with a broken token setup.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(_resolve_config(config))
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Codec and session store are built here; misconfiguration stops start-up
    from sessionauth.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from sessionauth.core import cors

    cors.init_app(app)

    from sessionauth.api import init_app as init_api

    init_api(app)

    from sessionauth.core import errors

    errors.init_app(app)

    from sessionauth import cli as app_cli

    app_cli.init_app(app)

    log.info(
        "Session service ready",
        extra={"event": "startup", "backend": app.config.get("SESSION_STORE")},
    )
    return app

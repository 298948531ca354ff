"""Flask CLI commands for schema setup and operator-forced logout."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from sessionauth.core.extensions import db, get_session_store
from sessionauth.services._shared.errors import StoreUnavailableError
from sessionauth.services.identity.service import IdentityService

LOGGER = logging.getLogger(__name__)


@click.group("sessions")
def sessions_cli() -> None:
    """Session store maintenance commands."""


@sessions_cli.command("init-db")
@with_appcontext
def init_db() -> None:
    """Create the ``users`` and ``refresh_tokens`` tables if missing."""
    db.create_all()
    click.echo("Database tables created.")


@sessions_cli.command("revoke")
@click.argument("username")
@with_appcontext
def revoke(username: str) -> None:
    """Delete the active session of USERNAME (forced logout)."""
    user = IdentityService().find_user_by_username(username)
    if user is None:
        raise click.ClickException(f"Unknown user: {username}")
    try:
        removed = get_session_store().delete_subject(user.id)
    except StoreUnavailableError as exc:
        raise click.ClickException(str(exc)) from exc
    LOGGER.info(
        "Session revoked by operator",
        extra={"event": "revoke", "subject": user.id, "reason": "cli"},
    )
    if removed:
        click.echo(f"Session of {username} revoked.")
    else:
        click.echo(f"{username} had no active session.")

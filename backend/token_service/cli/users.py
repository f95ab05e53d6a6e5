"""Flask CLI commands for managing principals and their refresh tokens."""

from __future__ import annotations

import logging

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy.exc import IntegrityError

from token_service.core.extensions import db
from token_service.models.user import DEFAULT_ROLE
from token_service.repositories.user import UserRepository
from token_service.services._shared.errors import PersistenceError

LOGGER = logging.getLogger(__name__)


@click.group("users")
def users_cli() -> None:
    """Principal store maintenance commands."""


@users_cli.command("create")
@click.argument("username")
@click.option("--role", default=DEFAULT_ROLE, show_default=True, help="Role copied into tokens.")
@click.password_option(help="Password for the new user.")
@with_appcontext
def create_user(username: str, role: str, password: str) -> None:
    """Create a user that can log in and receive tokens."""
    repo = UserRepository(db.session)
    try:
        user = repo.add(username=username, password=password, role=role)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise click.ClickException(f"User {username!r} already exists.") from exc
    LOGGER.info("users.created", extra={"user_id": user.id})
    click.echo(f"Created user id={user.id} username={user.username} role={user.role}")


@users_cli.command("set-role")
@click.argument("user_id", type=int)
@click.argument("role")
@with_appcontext
def set_role(user_id: int, role: str) -> None:
    """Change a user's role; new access tokens pick it up on next refresh."""
    user = UserRepository(db.session).set_role(user_id, role)
    if user is None:
        raise click.ClickException(f"User id={user_id} not found.")
    db.session.commit()
    click.echo(f"User id={user.id} role={user.role}")


@users_cli.command("revoke")
@click.argument("user_id", type=int)
@with_appcontext
def revoke(user_id: int) -> None:
    """Revoke the user's refresh token, forcing a new login."""
    authority = current_app.extensions["token_authority"]
    try:
        authority.revoke_refresh_token(user_id)
    except PersistenceError as exc:
        raise click.ClickException("Cache unavailable; refresh token not revoked.") from exc
    click.echo(f"Refresh token revoked for user id={user_id}")

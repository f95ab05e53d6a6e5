"""Command-line interface registration for the Flask application."""

from __future__ import annotations

from flask import Flask

from .users import users_cli


def init_app(app: Flask) -> None:
    """Register the ``flask users`` command group on the app CLI."""
    app.cli.add_command(users_cli)

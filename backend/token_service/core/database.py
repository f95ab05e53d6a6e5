"""Relational database handle and startup SQL scripts.

The shared :data:`db` instance lives in :mod:`token_service.core.extensions`
and is re-exported here. :func:`init_app` prepares the schema once the
extension is bound: ``create_all`` for the known models (when enabled) and
then every file listed in ``DATABASE_INIT_SCRIPTS``, in order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from flask import Flask
from sqlalchemy.exc import SQLAlchemyError

from token_service.core.extensions import db

log = logging.getLogger(__name__)


class DatabaseInitError(RuntimeError):
    """Raised when a startup SQL script cannot be read or executed."""


def run_init_scripts(paths: Iterable[str | Path]) -> int:
    """Execute SQL script files against the bound engine.

    Each file is handed to the driver whole, inside its own transaction, so
    string literals and function bodies containing ``;`` survive intact.
    SQLite's driver only accepts several statements through
    ``executescript``; every other driver gets the raw script text.

    :param paths: Script files, executed in the given order.
    :returns: Number of scripts executed.
    :raises DatabaseInitError: If a file is missing or a statement fails.
    """
    engine = db.engine
    driver_error = engine.dialect.loaded_dbapi.Error
    count = 0
    for raw_path in paths:
        path = Path(raw_path)
        try:
            script = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise DatabaseInitError(f"failed to read init script {path}: {exc}") from exc

        try:
            with engine.begin() as conn:
                if engine.dialect.name == "sqlite":
                    conn.connection.driver_connection.executescript(script)
                else:
                    conn.exec_driver_sql(script, execution_options={"no_parameters": True})
        except (SQLAlchemyError, driver_error) as exc:
            raise DatabaseInitError(f"failed to execute init script {path}: {exc}") from exc

        log.info("database.init_script", extra={"path": str(path)})
        count += 1
    return count


def init_app(app: Flask) -> None:
    """Create known tables and run configured init scripts.

    Must run after :func:`token_service.core.extensions.init_app`.
    """
    with app.app_context():
        if app.config.get("DATABASE_CREATE_ALL", True):
            db.create_all()
        scripts = app.config.get("DATABASE_INIT_SCRIPTS") or []
        if scripts:
            run_init_scripts(scripts)


__all__ = ["DatabaseInitError", "db", "init_app", "run_init_scripts"]

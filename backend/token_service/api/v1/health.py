"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from token_service.api.deps import json_response, timing
from token_service.core import extensions
from token_service.core.extensions import db

bp = Blueprint("health", __name__)


def _cache_status() -> str:
    client = extensions.redis_client
    if client is None:
        return "memory"
    try:
        client.ping()
    except RedisError:
        current_app.logger.warning("healthcheck.cache_error", exc_info=True)
        return "fail"
    return "ok"


@bp.get("/health")
@timing
def healthcheck():
    """Return application, database and cache health information."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:  # pragma: no cover - depends on DB backend
        current_app.logger.exception("healthcheck.db_error")
        db_status = "fail"
    cache_status = _cache_status()
    version = current_app.config.get("APP_VERSION", "dev")
    status = "ok" if db_status != "fail" and cache_status != "fail" else "degraded"
    payload = {"status": status, "db": db_status, "cache": cache_status, "version": version}
    return json_response(payload, status=200 if status == "ok" else 503)

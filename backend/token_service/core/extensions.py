"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import logging

import redis  # type: ignore[import-untyped]
from flask import Flask
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

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
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)
redis_client: redis.Redis | None = None


def _configure_jwt(app: Flask) -> None:
    """Derive Flask-JWT-Extended settings from the token configuration.

    Access tokens are verified by Flask-JWT-Extended with the same key,
    algorithm, issuer and audience the token authority signs with; the
    identity claim is ``sub`` (the username).
    """
    app.config.setdefault("JWT_ALGORITHM", "HS256")
    app.config["JWT_DECODE_ALGORITHMS"] = [app.config["JWT_ALGORITHM"]]
    app.config["JWT_DECODE_ISSUER"] = app.config.get("JWT_ISSUER")
    app.config["JWT_DECODE_AUDIENCE"] = app.config.get("JWT_AUDIENCE")
    app.config.setdefault("JWT_TOKEN_LOCATION", ["headers"])
    app.config.setdefault("JWT_IDENTITY_CLAIM", "sub")


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, JWT verification, rate limiting and Redis.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`token_service.models` package so SQLAlchemy metadata is ready
        before ``create_all`` or init scripts run.
    """
    db.init_app(app)

    # Ensure models are imported so the metadata knows every table
    from token_service import models as _models  # noqa: F401

    _configure_jwt(app)
    jwt.init_app(app)
    limiter.init_app(app)

    global redis_client
    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        redis_client = None
        app.extensions.pop("redis_client", None)
        return

    timeout = app.config.get("REDIS_SOCKET_TIMEOUT", 2.0)
    redis_client = redis.Redis.from_url(
        redis_url,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
        decode_responses=True,
    )
    try:
        redis_client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
    app.extensions["redis_client"] = redis_client
    log.info("redis.connected")


def get_redis() -> redis.Redis:
    """Return the initialized Redis client."""
    if redis_client is None:
        raise RuntimeError("Redis client is not initialized. Call init_app() first.")
    return redis_client


def close_redis() -> None:
    """Release the Redis connection pool (process shutdown)."""
    global redis_client
    if redis_client is not None:
        redis_client.close()
        redis_client = None

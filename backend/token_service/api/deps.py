"""Shared API helpers for dependency lookup and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import Response, current_app, jsonify, request
from flask_jwt_extended import get_jwt
from sqlalchemy.orm import Session

from token_service.core.extensions import db
from token_service.repositories.user import UserRepository
from token_service.services.auth.authority import TokenAuthority
from token_service.services.auth.service import AuthService

F = TypeVar("F", bound=Callable[..., Any])

TOKEN_AUTHORITY_KEY = "token_authority"


def get_session() -> Session:
    """Return the SQLAlchemy session bound to the current application."""

    return db.session


def get_token_authority() -> TokenAuthority:
    """Return the token authority built by the application factory."""

    try:
        return cast(TokenAuthority, current_app.extensions[TOKEN_AUTHORITY_KEY])
    except KeyError as exc:
        raise RuntimeError("Token authority is not configured. Use create_app().") from exc


def get_auth_service() -> AuthService:
    """Build a request-scoped :class:`AuthService`."""

    return AuthService(authority=get_token_authority(), users=UserRepository(get_session()))


def current_user_id() -> int:
    """Return the ``user_id`` claim of the verified access token."""

    return int(get_jwt()["user_id"])


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={
                    "endpoint": request_endpoint,
                    "method": request.method,
                    "elapsed_ms": round(elapsed_ms, 2),
                },
            )

    return wrapper  # type: ignore[return-value]

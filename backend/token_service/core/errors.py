"""Centralized JSON (RFC 7807) error handling for the API.

Every authentication failure a client can trigger (bad credentials, invalid,
expired, unknown or revoked tokens) is rendered as the same 401 problem so the
response never reveals which gate rejected the request. The distinction is
kept in the logs through ``error_kind``.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from token_service.core.extensions import jwt
from token_service.core.logger import ensure_request_id
from token_service.services._shared.errors import AuthError, PersistenceError

log = logging.getLogger(__name__)

UNAUTHORIZED_DETAIL = "Invalid or expired credentials"


def _http_status_to_code(status_code: int) -> str:
    """Map common HTTP status codes to canonical, stable error codes."""
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        413: "payload_too_large",
        415: "unsupported_media_type",
        422: "unprocessable_entity",
        429: "too_many_requests",
        500: "internal_server_error",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "error")


def _as_problem(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build an RFC 7807 Problem Details dict.

    :param status: HTTP status code.
    :param code: Stable machine-consumable error code.
    :param message: Human-readable error summary (safe for clients).
    :param details: Optional safe, structured details.
    :returns: Problem+JSON dictionary.
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path if request else None,
        "code": code,
    }
    if details:
        problem["details"] = details
    problem["request_id"] = ensure_request_id()
    return problem


def _problem_response(problem: dict[str, Any], status: int) -> tuple[Response, int]:
    """Return a Flask response with ``application/problem+json`` media type."""
    resp = jsonify(problem)
    resp.mimetype = "application/problem+json"
    if status == HTTPStatus.UNAUTHORIZED:
        resp.headers["WWW-Authenticate"] = 'Bearer realm="api"'
    return resp, status


def unauthorized_response() -> tuple[Response, int]:
    """The single 401 body shared by every authentication failure."""
    problem = _as_problem(
        status=HTTPStatus.UNAUTHORIZED,
        code="unauthorized",
        message=UNAUTHORIZED_DETAIL,
    )
    return _problem_response(problem, HTTPStatus.UNAUTHORIZED)


class APIError(Exception):
    """
    Represent a JSON-serializable API error.

    :param message: Human-readable description presented to clients.
    :param status_code: HTTP status code to return. Defaults to ``400``.
    :param code: Machine-readable identifier. Defaults to ``"bad_request"``.
    :param details: Optional structured payload included in the response.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}

    def to_problem(self) -> dict[str, Any]:
        return _as_problem(
            status=self.status_code,
            code=self.code,
            message=self.message,
            details=self.details or None,
        )


class ServiceUnavailable(APIError):
    """503 when a backing store cannot be reached."""

    def __init__(self, message: str = "Service temporarily unavailable") -> None:
        super().__init__(
            message, status_code=HTTPStatus.SERVICE_UNAVAILABLE, code="service_unavailable"
        )


def init_app(app: Flask) -> None:
    """
    Attach JSON error handlers to the Flask app.

    Notes
    -----
    - Guarantees RFC 7807 responses for all handled errors.
    - The catch-all handler doubles as panic recovery: the failure is logged
      with its location and the client gets a clean 500.
    - Flask-JWT-Extended verification failures reuse the uniform 401 body.
    """

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        problem = err.to_problem()
        level = log.error if err.status_code >= 500 else log.warning
        level(
            "APIError: code=%s status=%s msg=%s",
            err.code,
            err.status_code,
            err.message,
        )
        return _problem_response(problem, err.status_code)

    @app.errorhandler(AuthError)
    def handle_auth_error(err: AuthError):
        if err.is_terminal:
            log.info("auth.rejected", extra={"error_kind": err.kind.value})
            return unauthorized_response()
        if isinstance(err, PersistenceError):
            return handle_api_error(ServiceUnavailable())
        # SigningError: configuration problem, never the client's fault
        log.error("auth.signing_failed", extra={"error_kind": err.kind.value}, exc_info=err)
        problem = _as_problem(
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="internal_server_error",
            message="Unexpected error",
        )
        return _problem_response(problem, HTTPStatus.INTERNAL_SERVER_ERROR)

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        problem = _as_problem(
            status=HTTPStatus.UNPROCESSABLE_ENTITY,
            code="validation_error",
            message="Validation failed",
            details={"errors": err.messages},
        )
        log.warning("ValidationError")
        return _problem_response(problem, HTTPStatus.UNPROCESSABLE_ENTITY)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        error_code = _http_status_to_code(status)
        message = (err.description or error_code.replace("_", " ").capitalize()).strip()
        if status == HTTPStatus.NOT_FOUND and request:
            message = f"Route '{request.path}' not found"
        problem = _as_problem(status=status, code=error_code, message=message)
        level = log.error if status >= 500 else log.warning
        level("HTTPException: code=%s status=%s detail=%s", error_code, status, message)
        return _problem_response(problem, status)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        problem = _as_problem(
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="internal_server_error",
            message="Unexpected error",
        )
        log.error("Panic recovered: %s", type(err).__name__, exc_info=err)
        return _problem_response(problem, HTTPStatus.INTERNAL_SERVER_ERROR)

    # -- Flask-JWT-Extended (access token verification) ---------------------

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        log.info("auth.rejected", extra={"error_kind": "missing_token"})
        return unauthorized_response()

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        log.info("auth.rejected", extra={"error_kind": "invalid_token"})
        return unauthorized_response()

    @jwt.expired_token_loader
    def _expired_token(jwt_header: dict[str, Any], jwt_payload: dict[str, Any]):
        log.info("auth.rejected", extra={"error_kind": "expired_token"})
        return unauthorized_response()

    @jwt.token_verification_failed_loader
    def _verification_failed(jwt_header: dict[str, Any], jwt_payload: dict[str, Any]):
        log.info("auth.rejected", extra={"error_kind": "verification_failed"})
        return unauthorized_response()

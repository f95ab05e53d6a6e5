"""Authentication endpoints using the service layer."""

from __future__ import annotations

from dataclasses import asdict

from flask import Blueprint, current_app, request
from flask_jwt_extended import get_jwt, jwt_required

from token_service.api.deps import current_user_id, get_auth_service, json_response, timing
from token_service.core.extensions import limiter
from token_service.schemas import LoginSchema, MeSchema, RefreshSchema, TokenPairSchema

bp = Blueprint("auth", __name__, url_prefix="/auth")

login_schema = LoginSchema()
refresh_schema = RefreshSchema()
token_schema = TokenPairSchema()
me_schema = MeSchema()


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "5 per minute"))


@bp.post("/login")
@limiter.limit(_login_rate_limit)
@timing
def login():
    """Authenticate credentials and issue an access/refresh token pair."""

    dto = login_schema.load(request.get_json(silent=True) or {})
    pair = get_auth_service().login(dto)
    return json_response({"data": token_schema.dump(asdict(pair))})


@bp.post("/refresh")
@timing
def refresh():
    """Exchange a refresh token for a new pair; the presented token is superseded."""

    dto = refresh_schema.load(request.get_json(silent=True) or {})
    pair = get_auth_service().refresh(dto)
    return json_response({"data": token_schema.dump(asdict(pair))})


@bp.post("/logout")
@jwt_required()
@timing
def logout():
    """Revoke the caller's refresh token."""

    get_auth_service().logout(current_user_id())
    return "", 204


@bp.get("/me")
@jwt_required()
@timing
def me():
    """Return the identity carried by the access token."""

    claims = get_jwt()
    return json_response({"data": me_schema.dump(claims)})

"""HTTP tests for the authentication endpoints."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import fakeredis
import jwt as pyjwt
import pytest
from tests.factories.user import DEFAULT_PASSWORD, UserFactory
from token_service.core import config
from token_service.core.extensions import limiter
from token_service.factory import create_app
from token_service.infra.redis.redis_cache_store import RedisCacheStore

LOGIN = "/api/v1/auth/login"
REFRESH = "/api/v1/auth/refresh"
LOGOUT = "/api/v1/auth/logout"
ME = "/api/v1/auth/me"

# Fields that legitimately vary between two otherwise identical problems
VOLATILE = {"request_id", "instance"}


def _login(client, username, password=DEFAULT_PASSWORD):
    return client.post(LOGIN, json={"username": username, "password": password})


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _stable(problem: dict) -> dict:
    return {k: v for k, v in problem.items() if k not in VOLATILE}


@pytest.fixture()
def user(session):
    user = UserFactory(username="alice", role="admin")
    # committed: each request closes the scoped session, discarding flushed rows
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture()
def tokens(client, user):
    resp = _login(client, "alice")
    assert resp.status_code == 200
    return resp.get_json()["data"]


# ------------------------------- Login ------------------------------------ #
def test_login_returns_token_pair(client, user, authority):
    resp = _login(client, "alice")

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["token_type"] == "Bearer"
    assert data["expires_in"] == 15 * 60
    assert data["refresh_expires_in"] == 7 * 24 * 3600
    assert authority.cache.get(f"refresh_token:{user.id}") == data["refresh_token"]


def test_login_validation_error(client):
    resp = client.post(LOGIN, json={"username": "alice"})

    assert resp.status_code == 422
    body = resp.get_json()
    assert body["code"] == "validation_error"
    assert "password" in body["details"]["errors"]


# ------------------------------ Refresh ----------------------------------- #
def test_refresh_exchanges_and_supersedes(client, tokens):
    resp = client.post(REFRESH, json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 200
    renewed = resp.get_json()["data"]
    assert renewed["refresh_token"] != tokens["refresh_token"]

    replay = client.post(REFRESH, json={"refresh_token": tokens["refresh_token"]})
    assert replay.status_code == 401

    again = client.post(REFRESH, json={"refresh_token": renewed["refresh_token"]})
    assert again.status_code == 200


def test_access_token_cannot_be_used_to_refresh(client, tokens):
    resp = client.post(REFRESH, json={"refresh_token": tokens["access_token"]})
    assert resp.status_code == 401


# --------------------------- Logout and me -------------------------------- #
def test_me_returns_identity_from_access_token(client, user, tokens):
    resp = client.get(ME, headers=_bearer(tokens["access_token"]))

    assert resp.status_code == 200
    assert resp.get_json()["data"] == {"user_id": user.id, "username": "alice", "role": "admin"}


def test_logout_revokes_refresh_token(client, user, tokens, authority):
    resp = client.post(LOGOUT, headers=_bearer(tokens["access_token"]))

    assert resp.status_code == 204
    assert authority.cache.get(f"refresh_token:{user.id}") is None
    assert client.post(REFRESH, json={"refresh_token": tokens["refresh_token"]}).status_code == 401


def test_refresh_token_is_not_an_access_token(client, tokens):
    resp = client.get(ME, headers=_bearer(tokens["refresh_token"]))
    assert resp.status_code == 401


def test_expired_access_token_is_rejected(app, client, user):
    past = datetime.now(UTC) - timedelta(hours=1)
    token = pyjwt.encode(
        {
            "user_id": user.id,
            "username": user.username,
            "role": user.role,
            "iss": app.config["JWT_ISSUER"],
            "aud": app.config["JWT_AUDIENCE"],
            "sub": user.username,
            "iat": past,
            "nbf": past,
            "exp": past + timedelta(minutes=15),
        },
        app.config["JWT_SECRET_KEY"],
        algorithm="HS256",
    )

    assert client.get(ME, headers=_bearer(token)).status_code == 401


# ------------------------- Uniform 401 bodies ----------------------------- #
def test_all_authentication_failures_look_the_same(client, user, tokens):
    """Bad password, unknown user, garbage, replayed and revoked tokens share one body."""
    superseded = tokens["refresh_token"]
    renewed = client.post(REFRESH, json={"refresh_token": superseded}).get_json()["data"]
    client.post(LOGOUT, headers=_bearer(renewed["access_token"]))

    responses = [
        _login(client, "alice", "wrong-password"),
        _login(client, "nobody"),
        client.post(REFRESH, json={"refresh_token": "garbage"}),
        client.post(REFRESH, json={"refresh_token": superseded}),  # revoked
        client.post(REFRESH, json={"refresh_token": renewed["refresh_token"]}),  # not found
        client.get(ME),
        client.get(ME, headers=_bearer("garbage")),
    ]

    assert {r.status_code for r in responses} == {401}
    bodies = [_stable(r.get_json()) for r in responses]
    assert all(b == bodies[0] for b in bodies)
    assert bodies[0]["code"] == "unauthorized"
    assert bodies[0]["detail"] == "Invalid or expired credentials"
    assert all(r.mimetype == "application/problem+json" for r in responses)
    assert all(r.headers["WWW-Authenticate"].startswith("Bearer") for r in responses)


# ---------------------------- Cache outage -------------------------------- #
def test_cache_outage_returns_503(client, user, authority):
    server = fakeredis.FakeServer()
    server.connected = False
    authority.cache = RedisCacheStore(r=fakeredis.FakeRedis(server=server))

    resp = _login(client, "alice")

    assert resp.status_code == 503
    assert resp.get_json()["code"] == "service_unavailable"


# ---------------------------- Rate limiting ------------------------------- #
def test_login_is_rate_limited():
    class LimitedConfig(config.TestingConfig):
        LOG_LEVEL = "WARNING"
        RATELIMIT_ENABLED = True
        AUTH_LOGIN_RATE_LIMIT = "2 per minute"

    app = create_app(LimitedConfig, instance_relative_config=False)
    try:
        client = app.test_client()
        statuses = [_login(client, "nobody").status_code for _ in range(3)]
    finally:
        limiter.enabled = False

    assert statuses == [401, 401, 429]

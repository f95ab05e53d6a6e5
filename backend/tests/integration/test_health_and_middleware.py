"""Health probe and cross-cutting HTTP behaviour."""

from __future__ import annotations

import pytest
from token_service.core.middleware import SECURITY_HEADERS


def test_health_reports_components(client):
    resp = client.get("/api/v1/health")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "ok"
    assert body["db"] == "ok"
    assert body["cache"] == "memory"


@pytest.mark.parametrize("header", sorted(SECURITY_HEADERS))
def test_security_headers_present(client, header):
    resp = client.get("/api/v1/health")
    assert resp.headers[header] == SECURITY_HEADERS[header]


def test_request_id_is_echoed(client):
    resp = client.get("/api/v1/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"


def test_request_id_is_generated_when_missing(client):
    resp = client.get("/api/v1/health")
    assert resp.headers["X-Request-ID"]


def test_request_id_is_scoped_to_each_request(app, client):
    """Requests sharing one application context keep their own ids."""
    with app.app_context():
        first = client.get("/api/v1/health", headers={"X-Request-ID": "first"})
        second = client.get("/api/v1/health", headers={"X-Request-ID": "second"})
        generated = [client.get("/api/v1/health").headers["X-Request-ID"] for _ in range(2)]

    assert first.headers["X-Request-ID"] == "first"
    assert second.headers["X-Request-ID"] == "second"
    assert generated[0] != generated[1]
    assert "second" not in generated


def test_unknown_route_is_problem_json(client):
    resp = client.get("/api/v1/nope", headers={"X-Request-ID": "req-404"})

    assert resp.status_code == 404
    assert resp.mimetype == "application/problem+json"
    body = resp.get_json()
    assert body["code"] == "not_found"
    assert body["request_id"] == "req-404"


def test_cors_preflight_allows_authorization_header(client):
    resp = client.options(
        "/api/v1/auth/login",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Authorization",
        },
    )

    assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
    assert "authorization" in resp.headers["Access-Control-Allow-Headers"].lower()


def test_unexpected_error_is_recovered(app, client, monkeypatch):
    """Any unhandled exception becomes a clean 500 problem."""
    from token_service.api.v1 import auth

    def explode():
        raise RuntimeError("boom")

    monkeypatch.setattr(auth, "get_auth_service", explode)

    resp = client.post("/api/v1/auth/login", json={"username": "a", "password": "b"})

    assert resp.status_code == 500
    body = resp.get_json()
    assert body["code"] == "internal_server_error"
    assert "boom" not in body["detail"]

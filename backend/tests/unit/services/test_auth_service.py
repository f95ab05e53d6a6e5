# tests/unit/services/test_auth_service.py
from __future__ import annotations

from datetime import timedelta

import jwt as pyjwt
import pytest
from tests.factories.user import DEFAULT_PASSWORD, UserFactory
from token_service.infra.jwt.jwt_signer import JWTSigner
from token_service.repositories.user import UserRepository
from token_service.services._shared.errors import (
    AuthError,
    InvalidCredentialsError,
    NotFoundError,
    RevokedError,
)
from token_service.services._shared.ports import InMemoryCacheStore
from token_service.services.auth.authority import TokenAuthority
from token_service.services.auth.dto import AuthTokenConfig, LoginIn, RefreshIn, TokenPairOut
from token_service.services.auth.service import AuthService


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def cache() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture()
def service(session, cache) -> AuthService:
    """Build an AuthService wired to an in-memory cache and the test session."""
    cfg = AuthTokenConfig(
        secret_key="service-test-secret-key-0123456789",
        issuer="token-service",
        audience="token-service-clients",
        refresh_expires=timedelta(days=1),
    )
    authority = TokenAuthority(signer=JWTSigner(secret_key=cfg.secret_key), cache=cache, cfg=cfg)
    return AuthService(authority=authority, users=UserRepository(session))


# -------------------------------- Tests ----------------------------------- #
def test_login_issues_token_pair_and_stores_refresh_token(service, cache, session):
    """Login returns a pair whose refresh token is the user's live one."""
    user = UserFactory(username="alice")
    session.flush()

    pair = service.login(LoginIn(username="alice", password=DEFAULT_PASSWORD))

    assert isinstance(pair, TokenPairOut)
    assert cache.get(f"refresh_token:{user.id}") == pair.refresh_token
    assert service.authority.validate_refresh_token(pair.refresh_token) == user.id


def test_login_ignores_surrounding_whitespace_in_username(service, session):
    UserFactory(username="bob")
    session.flush()

    pair = service.login(LoginIn(username="  bob ", password=DEFAULT_PASSWORD))
    assert pair.access_token


@pytest.mark.parametrize(
    ("username", "password"),
    [("missing", DEFAULT_PASSWORD), ("carol", "wrong-password")],
)
def test_login_invalid_credentials(service, session, username, password):
    UserFactory(username="carol")
    session.flush()

    with pytest.raises(InvalidCredentialsError) as excinfo:
        service.login(LoginIn(username=username, password=password))
    assert excinfo.value.is_terminal


def test_refresh_supersedes_presented_token(service, session):
    """The exchanged token stops working; the new one is live."""
    user = UserFactory()
    session.flush()
    first = service.login(LoginIn(username=user.username, password=DEFAULT_PASSWORD))

    second = service.refresh(RefreshIn(refresh_token=first.refresh_token))
    assert second.refresh_token != first.refresh_token

    with pytest.raises(RevokedError):
        service.refresh(RefreshIn(refresh_token=first.refresh_token))
    assert service.authority.validate_refresh_token(second.refresh_token) == user.id


def test_refresh_picks_up_role_changes(service, session):
    user = UserFactory(role="user")
    session.flush()
    pair = service.login(LoginIn(username=user.username, password=DEFAULT_PASSWORD))

    UserRepository(session).set_role(user.id, "Admin")
    renewed = service.refresh(RefreshIn(refresh_token=pair.refresh_token))

    claims = pyjwt.decode(renewed.access_token, options={"verify_signature": False})
    assert claims["role"] == "admin"


def test_refresh_for_deleted_principal_is_not_found_and_revokes(service, cache, session):
    user = UserFactory()
    session.flush()
    pair = service.login(LoginIn(username=user.username, password=DEFAULT_PASSWORD))
    user_id = user.id

    session.delete(user)
    session.flush()

    with pytest.raises(NotFoundError):
        service.refresh(RefreshIn(refresh_token=pair.refresh_token))
    assert cache.get(f"refresh_token:{user_id}") is None


def test_logout_makes_last_refresh_token_not_found(service, session):
    user = UserFactory()
    session.flush()
    pair = service.login(LoginIn(username=user.username, password=DEFAULT_PASSWORD))

    service.logout(user.id)

    with pytest.raises(NotFoundError):
        service.refresh(RefreshIn(refresh_token=pair.refresh_token))


def test_all_token_failures_share_the_auth_error_base(service):
    with pytest.raises(AuthError):
        service.refresh(RefreshIn(refresh_token="garbage"))

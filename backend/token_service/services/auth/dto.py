# token_service/services/auth/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

REFRESH_TOKEN_TYPE = "refresh"

# ---------------------------- Domain DTOs --------------------------------- #


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated identity tokens are issued for.

    Supplied by the calling layer; never stored by the token authority.

    :param id: Unsigned integer user id.
    :type id: int
    :param username: Login handle, used as the access token subject.
    :type username: str
    :param role: Role name copied into access tokens.
    :type role: str
    """

    id: int
    username: str
    role: str


@dataclass(frozen=True, slots=True)
class AccessClaims:
    """Claims of a stateless access token."""

    user_id: int
    username: str
    role: str
    issued_at: datetime
    expires_at: datetime
    not_before: datetime
    issuer: str
    audience: str

    @property
    def subject(self) -> str:
        return self.username

    def to_payload(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "username": self.username,
            "role": self.role,
            "iss": self.issuer,
            "sub": self.subject,
            "aud": self.audience,
            "iat": int(self.issued_at.timestamp()),
            "nbf": int(self.not_before.timestamp()),
            "exp": int(self.expires_at.timestamp()),
        }


@dataclass(frozen=True, slots=True)
class RefreshClaims:
    """Minimal payload of a refresh token."""

    user_id: int
    expires_at: datetime
    token_type: str = REFRESH_TOKEN_TYPE

    def to_payload(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "exp": int(self.expires_at.timestamp()),
            "token_type": self.token_type,
        }


# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param username: Login handle.
    :type username: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    username: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    refresh_token: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :param refresh_token: Encoded refresh JWT.
    :param expires_in: Access token lifetime in seconds.
    :param refresh_expires_in: Refresh token lifetime in seconds.
    """

    access_token: str
    refresh_token: str
    expires_in: int
    refresh_expires_in: int
    token_type: str = "Bearer"


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission configuration.

    :param secret_key: Symmetric signing key.
    :param issuer: ``iss`` claim for access tokens.
    :param audience: ``aud`` claim for access tokens.
    :param access_expires: Access token lifetime.
    :param refresh_expires: Refresh token lifetime (and cache TTL).
    :param algorithm: Pinned HMAC algorithm.
    """

    secret_key: str
    issuer: str
    audience: str
    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=7)
    algorithm: str = "HS256"

    def __post_init__(self) -> None:
        for name in ("access_expires", "refresh_expires"):
            if getattr(self, name) <= timedelta(0):
                raise ValueError(f"{name} must be a positive duration")

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> AuthTokenConfig:
        """Build the config from Flask-style settings (minutes / days)."""
        return cls(
            secret_key=str(config.get("JWT_SECRET_KEY") or ""),
            issuer=str(config.get("JWT_ISSUER", "")),
            audience=str(config.get("JWT_AUDIENCE", "")),
            access_expires=timedelta(minutes=int(config.get("ACCESS_TOKEN_EXPIRES_MINUTES", 15))),
            refresh_expires=timedelta(days=int(config.get("REFRESH_TOKEN_EXPIRES_DAYS", 7))),
            algorithm=str(config.get("JWT_ALGORITHM", "HS256")),
        )

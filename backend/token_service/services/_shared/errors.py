"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP. They serve as stable contracts between the token authority,
its stores, and the application services.

Every authentication failure carries a :class:`TokenErrorKind`; callers branch
on the class or on ``kind`` and never on the human-readable message. The
translation to HTTP responses (RFC 7807) is handled by
``token_service/core/errors.py``.
"""

from __future__ import annotations

from enum import Enum


class TokenErrorKind(str, Enum):
    """Stable identifiers for the authentication failure taxonomy."""

    SIGNING = "signing"
    PERSISTENCE = "persistence"
    INVALID_TOKEN = "invalid_token"
    NOT_FOUND = "not_found"
    REVOKED = "revoked"
    INVALID_CREDENTIALS = "invalid_credentials"


# Kinds reported to clients as one indistinguishable 401
TERMINAL_KINDS = frozenset(
    {
        TokenErrorKind.INVALID_TOKEN,
        TokenErrorKind.NOT_FOUND,
        TokenErrorKind.REVOKED,
        TokenErrorKind.INVALID_CREDENTIALS,
    }
)


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to ``APIError`` responses.
    """


class AuthError(ServiceError):
    """
    Base class for token and credential failures.

    :ivar kind: Machine-readable failure kind.
    :ivar message: Internal description, used for logs only.
    """

    kind: TokenErrorKind = TokenErrorKind.INVALID_TOKEN
    default_message = "authentication failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def is_terminal(self) -> bool:
        """``True`` when the client must re-authenticate (uniform 401)."""
        return self.kind in TERMINAL_KINDS


# --------------------------------------------------------------------------- #
# Specific authentication errors
# --------------------------------------------------------------------------- #


class SigningError(AuthError):
    """Key or algorithm misconfiguration; fatal at startup."""

    kind = TokenErrorKind.SIGNING
    default_message = "failed to sign token"


class PersistenceError(AuthError):
    """The cache collaborator could not be reached; retryable by the caller."""

    kind = TokenErrorKind.PERSISTENCE
    default_message = "token store unavailable"


class InvalidTokenError(AuthError):
    """Malformed, mis-signed, wrong-type or expired token."""

    kind = TokenErrorKind.INVALID_TOKEN
    default_message = "invalid token"


class NotFoundError(AuthError):
    """No stored refresh token for the claimed user (never issued or expired)."""

    kind = TokenErrorKind.NOT_FOUND
    default_message = "refresh token not found"


class RevokedError(AuthError):
    """Stored refresh token differs from the presented one (revoked or superseded)."""

    kind = TokenErrorKind.REVOKED
    default_message = "refresh token has been revoked"


class InvalidCredentialsError(AuthError):
    """Unknown username or wrong password at login."""

    kind = TokenErrorKind.INVALID_CREDENTIALS
    default_message = "invalid credentials"


__all__ = [
    "TERMINAL_KINDS",
    "AuthError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "NotFoundError",
    "PersistenceError",
    "RevokedError",
    "ServiceError",
    "SigningError",
    "TokenErrorKind",
]

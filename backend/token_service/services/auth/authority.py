# token_service/services/auth/authority.py
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from token_service.services._shared.errors import (
    InvalidTokenError,
    NotFoundError,
    PersistenceError,
    RevokedError,
)
from token_service.services._shared.ports import CacheError, CacheStore, TokenSigner
from token_service.services.auth.dto import (
    REFRESH_TOKEN_TYPE,
    AccessClaims,
    AuthTokenConfig,
    Principal,
    RefreshClaims,
    TokenPairOut,
)

REFRESH_KEY_PREFIX = "refresh_token:"


class TokenAuthority:
    """
    Access/refresh token life cycle: issue, validate, revoke.

    Access tokens are stateless. Refresh tokens are mirrored in the cache
    under ``refresh_token:<user_id>``; the entry holds the only refresh token
    currently valid for that user, so issuing a new one supersedes the old.

    :param signer: Signs and verifies tokens with the configured key.
    :param cache: Key-value store holding the live refresh token per user.
    :param cfg: Lifetimes, issuer and audience.
    :param logger: Logger handed in by the application; defaults to the
        module logger.
    :param clock: Source of the current UTC time.
    """

    def __init__(
        self,
        *,
        signer: TokenSigner,
        cache: CacheStore,
        cfg: AuthTokenConfig,
        logger: logging.Logger | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.signer = signer
        self.cache = cache
        self.cfg = cfg
        self.log = logger or logging.getLogger(__name__)
        self._clock = clock or (lambda: datetime.now(UTC))

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def refresh_key(user_id: int) -> str:
        """Cache key of the live refresh token for ``user_id``."""
        return f"{REFRESH_KEY_PREFIX}{user_id}"

    def now(self) -> datetime:
        # JWT numeric dates are whole seconds
        return self._clock().replace(microsecond=0)

    # ------------------------------------------------------------------ #
    # Access tokens
    # ------------------------------------------------------------------ #

    def issue_access_token(self, principal: Principal) -> str:
        """
        Sign a fresh access token for ``principal``.

        :raises SigningError: If signing fails (misconfigured key).
        """
        now = self.now()
        claims = AccessClaims(
            user_id=principal.id,
            username=principal.username,
            role=principal.role,
            issued_at=now,
            not_before=now,
            expires_at=now + self.cfg.access_expires,
            issuer=self.cfg.issuer,
            audience=self.cfg.audience,
        )
        return self.signer.encode(claims.to_payload())

    # ------------------------------------------------------------------ #
    # Refresh tokens
    # ------------------------------------------------------------------ #

    def issue_refresh_token(self, user_id: int) -> str:
        """
        Sign a refresh token and make it the user's only live one.

        The cache write overwrites any previous token for the user. When the
        write fails the token is discarded: it was never issued.

        :raises SigningError: If signing fails.
        :raises PersistenceError: If the cache write fails.
        """
        claims = RefreshClaims(user_id=user_id, expires_at=self.now() + self.cfg.refresh_expires)
        payload = claims.to_payload()
        # distinguishes two tokens issued within the same second
        payload["jti"] = uuid4().hex
        token = self.signer.encode(payload)

        try:
            self.cache.set(self.refresh_key(user_id), token, self.cfg.refresh_expires)
        except CacheError as exc:
            self.log.error(
                "refresh_token.persist_failed",
                extra={"user_id": user_id, "error_kind": PersistenceError.kind.value},
            )
            raise PersistenceError("failed to store refresh token") from exc

        self.log.debug("refresh_token.issued", extra={"user_id": user_id})
        return token

    def validate_refresh_token(self, token: str) -> int:
        """
        Check a presented refresh token and return its user id.

        The first failing gate decides the error.

        :raises InvalidTokenError: Foreign algorithm, bad signature, expired,
            not a refresh token, or a missing/malformed ``user_id``.
        :raises NotFoundError: Nothing stored for the user.
        :raises RevokedError: The stored token is a different one.
        :raises PersistenceError: The cache could not be reached.
        """
        claims = self.signer.decode(token, required=("exp",))

        if claims.get("token_type") != REFRESH_TOKEN_TYPE:
            raise InvalidTokenError("invalid token type")

        user_id = self._extract_user_id(claims)

        try:
            stored = self.cache.get(self.refresh_key(user_id))
        except CacheError as exc:
            self.log.error(
                "refresh_token.lookup_failed",
                extra={"user_id": user_id, "error_kind": PersistenceError.kind.value},
            )
            raise PersistenceError("failed to read refresh token") from exc

        if stored is None:
            self.log.info(
                "refresh_token.not_found",
                extra={"user_id": user_id, "error_kind": NotFoundError.kind.value},
            )
            raise NotFoundError()

        if stored != token:
            # superseded or revoked token presented again: possible replay
            self.log.warning(
                "refresh_token.revoked_presented",
                extra={"user_id": user_id, "error_kind": RevokedError.kind.value},
            )
            raise RevokedError()

        return user_id

    def revoke_refresh_token(self, user_id: int) -> None:
        """
        Delete the user's refresh token. Idempotent.

        :raises PersistenceError: If the cache delete fails at transport level.
        """
        try:
            self.cache.delete(self.refresh_key(user_id))
        except CacheError as exc:
            self.log.error(
                "refresh_token.revoke_failed",
                extra={"user_id": user_id, "error_kind": PersistenceError.kind.value},
            )
            raise PersistenceError("failed to revoke refresh token") from exc
        self.log.info("refresh_token.revoked", extra={"user_id": user_id})

    # ------------------------------------------------------------------ #
    # Pairs
    # ------------------------------------------------------------------ #

    def issue_token_pair(self, principal: Principal) -> TokenPairOut:
        """
        Issue an access token and a refresh token for ``principal``.

        The refresh token is persisted first, so a cache failure yields no pair.
        """
        refresh = self.issue_refresh_token(principal.id)
        access = self.issue_access_token(principal)
        return TokenPairOut(
            access_token=access,
            refresh_token=refresh,
            expires_in=int(self.cfg.access_expires.total_seconds()),
            refresh_expires_in=int(self.cfg.refresh_expires.total_seconds()),
        )

    @staticmethod
    def _extract_user_id(claims: dict[str, Any]) -> int:
        value = claims.get("user_id")
        # bool is an int subclass; reject it explicitly
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise InvalidTokenError("invalid user ID in token")
        return value

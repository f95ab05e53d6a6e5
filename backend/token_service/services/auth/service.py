# token_service/services/auth/service.py
from __future__ import annotations

import logging

from token_service.repositories.user import UserRepository
from token_service.services._shared.errors import InvalidCredentialsError, NotFoundError
from token_service.services.auth.authority import TokenAuthority
from token_service.services.auth.dto import LoginIn, RefreshIn, TokenPairOut

log = logging.getLogger(__name__)


class AuthService:
    """
    Authentication lifecycle service (login / refresh / logout).

    Credentials and principals come from the user repository; every token
    operation is delegated to the :class:`TokenAuthority`.
    """

    def __init__(self, *, authority: TokenAuthority, users: UserRepository) -> None:
        """
        Initialize the service with its dependencies.

        :param authority: Issues, validates and revokes tokens.
        :param users: Principal lookups and password checks.
        """
        self.authority = authority
        self.users = users

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> TokenPairOut:
        """
        Authenticate credentials and issue a fresh token pair.

        :raises InvalidCredentialsError: Unknown user or wrong password.
        :raises PersistenceError: The refresh token could not be stored.
        """
        user = self.users.authenticate(dto.username, dto.password)
        if user is None:
            log.info("auth.login_failed")
            raise InvalidCredentialsError()

        pair = self.authority.issue_token_pair(user.to_principal())
        log.info("auth.login", extra={"user_id": user.id})
        return pair

    # ------------------------------------------------------------------ #
    # Refresh exchange
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        """
        Exchange a valid refresh token for a new pair.

        The new refresh token overwrites the stored one, so the presented
        token stops being valid.

        :raises InvalidTokenError | NotFoundError | RevokedError: From validation.
        :raises NotFoundError: The principal no longer exists.
        """
        user_id = self.authority.validate_refresh_token(dto.refresh_token)

        user = self.users.get(user_id)
        if user is None:
            # principal deleted after issuance: drop its token as well
            self.authority.revoke_refresh_token(user_id)
            raise NotFoundError("principal no longer exists")

        pair = self.authority.issue_token_pair(user.to_principal())
        log.info("auth.refresh", extra={"user_id": user_id})
        return pair

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, user_id: int) -> None:
        """Revoke the user's refresh token (idempotent)."""
        self.authority.revoke_refresh_token(user_id)
        log.info("auth.logout", extra={"user_id": user_id})

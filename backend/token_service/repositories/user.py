"""User repository for persistence and authentication utilities."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select
from sqlalchemy.orm import Session

from token_service.models.user import DEFAULT_ROLE, User


class UserRepository:
    """Persistence-only repository for :class:`User`.

    It NEVER handles JWT or cache state: only DB-level user lookups.

    :param session: SQLAlchemy session (usually ``db.session``).
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # ---------------------------- Lookup helpers ----------------------------

    def get(self, user_id: int) -> User | None:
        """Fetch a user by primary key."""
        return cast(User | None, self.session.get(User, user_id))

    def get_by_username(self, username: str) -> User | None:
        """Fetch a user by username (surrounding whitespace ignored).

        :param username: Login handle.
        :returns: User instance or ``None`` when not found.
        """
        stmt = select(User).where(User.username == username.strip())
        result = self.session.execute(stmt).scalars().first()
        return cast(User | None, result)

    # ---------------------------- Writes ----------------------------

    def add(self, *, username: str, password: str, role: str = DEFAULT_ROLE) -> User:
        """Create a user and flush so its id is assigned."""
        user = User(username=username, role=role)
        user.password = password
        self.session.add(user)
        self.session.flush()
        return user

    def set_role(self, user_id: int, role: str) -> User | None:
        user = self.get(user_id)
        if user is None:
            return None
        user.role = role
        self.session.flush()
        return user

    # ---------------------------- Password ops ----------------------------

    def authenticate(self, username: str, password: str) -> User | None:
        """Authenticate a user by username and password.

        :returns: Authenticated user or ``None`` when credentials fail.
        """
        user = self.get_by_username(username)
        if not user or not user.verify_password(password):
            return None
        return user

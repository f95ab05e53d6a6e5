"""User model: the principal store behind login and refresh exchange."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, validates
from werkzeug.security import check_password_hash, generate_password_hash

from token_service.core.extensions import db
from token_service.services.auth.dto import Principal

DEFAULT_ROLE = "user"


class User(db.Model):
    """
    Authentication identity.

    Fields
    ------
    id : int
        Auto-incrementing primary key; the ``user_id`` carried by tokens.
    username : str
        Login handle and access token subject. Unique per system.
    role : str
        Role copied into access tokens.
    password_hash : str
        Hashed password (write-only setter via ``password``).
    created_at : datetime
        Creation timestamp filled by the database.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default=DEFAULT_ROLE)
    password_hash: Mapped[str] = mapped_column(String(254), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (UniqueConstraint("username", name="uq_users_username"),)

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        """
        Verify a password against the stored hash.

        :param raw: Plain text password candidate.
        :returns: ``True`` if it matches; otherwise ``False``.
        """
        if not self.password_hash:
            return False
        return bool(check_password_hash(self.password_hash, raw))

    def to_principal(self) -> Principal:
        """Project the row onto the attributes tokens are issued for."""
        return Principal(id=self.id, username=self.username, role=self.role)

    # -------------------- Validators --------------------
    @validates("username")
    def _normalize_username(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Username is required.")
        return value.strip()

    @validates("role")
    def _normalize_role(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Role is required.")
        return value.strip().lower()

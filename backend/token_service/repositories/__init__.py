"""Repository package exposing persistence-layer access for the principal store."""

from __future__ import annotations

from token_service.repositories.user import UserRepository

__all__ = ["UserRepository"]

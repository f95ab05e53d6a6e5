"""Marshmallow schemas exposed for the API layer."""

from __future__ import annotations

from .auth import LoginSchema, MeSchema, RefreshSchema, TokenPairSchema

__all__ = ["LoginSchema", "MeSchema", "RefreshSchema", "TokenPairSchema"]

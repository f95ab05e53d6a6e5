"""Service layer public API.

Re-exports
----------
- Error taxonomy (from ``token_service.services._shared.errors``)
    * :class:`ServiceError`, :class:`AuthError`, :class:`TokenErrorKind`
- Token core (from ``token_service.services.auth``)
    * :class:`TokenAuthority`, :class:`AuthTokenConfig`, :class:`Principal`

:class:`~token_service.services.auth.service.AuthService` is imported from its
module directly; it depends on the ORM layer.
"""

from __future__ import annotations

from token_service.services._shared.errors import AuthError, ServiceError, TokenErrorKind
from token_service.services.auth import AuthTokenConfig, Principal, TokenAuthority

__all__ = [
    "AuthError",
    "AuthTokenConfig",
    "Principal",
    "ServiceError",
    "TokenAuthority",
    "TokenErrorKind",
]

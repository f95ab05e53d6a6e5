"""
token_service.services._shared.ports
====================================

Collection of *ports* (hexagonal interfaces) that define the contracts the
token authority depends on.

Modules
-------
- :mod:`cache_store`:
    Defines :class:`~.CacheStore`: the ``set/get/delete`` key-value contract,
    :class:`~.CacheError` for transport failures, and
    :class:`~.InMemoryCacheStore`, a TTL-aware fake.

- :mod:`token_signer`:
    Defines :class:`~.TokenSigner`: abstraction for signing and verifying
    compact tokens with a pinned algorithm.

Concrete adapters (Redis, PyJWT) implement these interfaces under
``token_service.infra``.
"""

from __future__ import annotations

from .cache_store import CacheError, CacheStore, InMemoryCacheStore
from .token_signer import TokenSigner

__all__ = [
    "CacheError",
    "CacheStore",
    "InMemoryCacheStore",
    "TokenSigner",
]

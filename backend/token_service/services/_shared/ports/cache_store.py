from __future__ import annotations

import threading
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Protocol


class CacheError(Exception):
    """Transport-level failure of the cache collaborator (unreachable, timeout)."""


class CacheStore(Protocol):
    """
    Minimal key-value cache contract consumed by the token authority.

    Values are plain strings keyed by string. A missing key is not an error:
    :meth:`get` returns ``None``. Transport failures raise :class:`CacheError`.
    Single-key operations are expected to be atomic.
    """

    def set(self, key: str, value: str, ttl: timedelta) -> None:
        """Store ``value`` under ``key`` with expiry ``ttl``, overwriting any prior value."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or ``None`` when absent or expired."""

    def delete(self, key: str) -> None:
        """Remove ``key``. Deleting an absent key is a no-op."""


class InMemoryCacheStore(CacheStore):
    """
    In-process cache honouring TTLs, used in tests and keyless development.

    :param clock: Monotonic seconds source, injectable to simulate expiry.

    .. note::
       Uses a threading lock so single-key operations stay atomic.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._data: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: str, ttl: timedelta) -> None:
        seconds = ttl.total_seconds()
        if seconds <= 0:
            raise ValueError("ttl must be positive")
        with self._lock:
            self._data[key] = (value, self._clock() + seconds)

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, deadline = entry
            if deadline <= self._clock():
                # lazily evict
                del self._data[key]
                return None
            return value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

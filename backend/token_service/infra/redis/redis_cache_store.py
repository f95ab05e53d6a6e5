import logging
from dataclasses import dataclass
from datetime import timedelta

import redis  # type: ignore[import-untyped]
from redis.exceptions import RedisError  # type: ignore[import-untyped]

from token_service.services._shared.ports import CacheError, CacheStore

log = logging.getLogger(__name__)


@dataclass(slots=True)
class RedisCacheStore(CacheStore):
    """
    Redis-backed key-value cache.

    Timeouts are enforced by the client (``socket_timeout``); every
    transport failure is logged and re-raised as :class:`CacheError`.

    :param r: A Redis client (already connected).
    """

    r: redis.Redis

    @staticmethod
    def _ttl_seconds(ttl: timedelta) -> int:
        return max(1, int(ttl.total_seconds()))

    def set(self, key: str, value: str, ttl: timedelta) -> None:
        try:
            self.r.set(key, value, ex=self._ttl_seconds(ttl))
        except RedisError as exc:
            log.error("Error set data in Redis: %s", exc)
            raise CacheError(f"set {key!r} failed") from exc

    def get(self, key: str) -> str | None:
        try:
            value = self.r.get(key)
        except RedisError as exc:
            log.error("Error get data from Redis: %s", exc)
            raise CacheError(f"get {key!r} failed") from exc
        if value is None:
            return None
        # clients built without decode_responses hand back bytes
        return value.decode() if isinstance(value, bytes | bytearray) else str(value)

    def delete(self, key: str) -> None:
        try:
            self.r.delete(key)
        except RedisError as exc:
            log.error("Error delete data from Redis: %s", exc)
            raise CacheError(f"delete {key!r} failed") from exc

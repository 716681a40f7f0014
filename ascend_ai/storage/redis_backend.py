"""
Redis-backed key-value store for the Ascend AI mediation layer.

Implements the same read/write/remove contract as the in-memory and
file stores, so the cache and rate limiter can persist to Redis when
several processes should share one durable medium.
Keys: ``{prefix}:{key}``, e.g. ``ascend:ascend_ai_cache``.
"""

import logging
from typing import Any, Optional

import redis

logger = logging.getLogger(__name__)


class RedisStore:
    """Redis string-key store.

    Args:
        redis_url: Redis connection URL (e.g. redis://localhost:6379/0).
        key_prefix: Prefix for all keys (default ``ascend``).
    """

    def __init__(
        self,
        redis_url: str,
        key_prefix: str = "ascend",
        _redis_client: Optional[Any] = None,
    ) -> None:
        if _redis_client is not None:
            self._client = _redis_client
        else:
            self._client = redis.from_url(redis_url, decode_responses=True)
        self._key_prefix = key_prefix.rstrip(":")

    def _key(self, key: str) -> str:
        """Return full Redis key for a store key."""
        return f"{self._key_prefix}:{key}"

    def read(self, key: str) -> Optional[str]:
        value = self._client.get(self._key(key))
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def write(self, key: str, value: str) -> None:
        self._client.set(self._key(key), value)

    def remove(self, key: str) -> None:
        self._client.delete(self._key(key))

"""
Long-term Memory Store (v1.0.0)
Redis get/set/delete wrapper for per-user conversation summaries.
"""
import logging
from typing import Optional

import redis

from stylist_ai.config.settings import get_settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "stylist:memory:"


def memory_key(user_id: str) -> str:
    return f"{KEY_PREFIX}{user_id}"


class MemoryStore:
    """
    Thin Redis wrapper. Redis failures are logged and treated as a miss
    (get) or a no-op (set/delete).
    """

    def __init__(self, client: Optional[redis.Redis] = None, ttl_seconds: Optional[int] = None):
        self._client = client
        self._ttl_seconds = ttl_seconds

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis.from_url(get_settings().redis_url, decode_responses=True)
        return self._client

    @property
    def ttl_seconds(self) -> int:
        if self._ttl_seconds is None:
            return get_settings().memory_ttl_seconds
        return self._ttl_seconds

    def get(self, user_id: str) -> Optional[str]:
        """Return the cached summary for a user, or None."""
        try:
            value = self.client.get(memory_key(user_id))
        except redis.RedisError as e:
            logger.warning(f"Memory cache read failed for {user_id}: {e}")
            return None

        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value or None

    def set(self, user_id: str, summary: str, ttl_seconds: Optional[int] = None) -> bool:
        """Store a summary with a TTL. Returns True on success."""
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds
        try:
            self.client.setex(memory_key(user_id), ttl, summary)
            return True
        except redis.RedisError as e:
            logger.warning(f"Memory cache write failed for {user_id}: {e}")
            return False

    def delete(self, user_id: str) -> bool:
        """Delete a user's summary. Returns True if a key was removed."""
        try:
            return bool(self.client.delete(memory_key(user_id)))
        except redis.RedisError as e:
            logger.warning(f"Memory cache delete failed for {user_id}: {e}")
            return False

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False


_memory_store: Optional[MemoryStore] = None


def get_memory_store() -> MemoryStore:
    """Get the shared MemoryStore (lazy singleton)."""
    global _memory_store
    if _memory_store is None:
        _memory_store = MemoryStore()
    return _memory_store


def set_memory_store(store: Optional[MemoryStore]):
    """Replace the shared store (tests)."""
    global _memory_store
    _memory_store = store

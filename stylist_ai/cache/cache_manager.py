"""
Cache Manager (v2.0.0)
Cache key generation and high-level cache operations for external lookups.
"""
import os
import json
import hashlib
import logging
from typing import Dict, Any, Optional

from stylist_ai.cache.cache_store import CacheStore

logger = logging.getLogger(__name__)


# Cache settings from environment
CACHE_ENABLED = os.getenv("STYLIST_CACHE_ENABLED", "true").lower() == "true"
CACHE_TTL_MINUTES = int(os.getenv("STYLIST_CACHE_TTL_MINUTES", "30"))


class CacheManager:
    """High-level cache management for product, image and trend lookups."""

    _instance = None
    _store: Optional[CacheStore] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._store = CacheStore(ttl_minutes=CACHE_TTL_MINUTES)
        return cls._instance

    @property
    def enabled(self) -> bool:
        """Check if caching is enabled."""
        return CACHE_ENABLED

    def generate_cache_key(self, namespace: str, params: Dict[str, Any]) -> str:
        """
        Generate cache key from request parameters.

        Args:
            namespace: Lookup family (products, trends, images, ...)
            params: Parameters that identify the lookup

        Returns:
            "<namespace>:<sha256>" key
        """
        key_string = json.dumps(params, sort_keys=True, default=str)
        return f"{namespace}:{hashlib.sha256(key_string.encode()).hexdigest()}"

    def get(self, cache_key: str) -> Optional[Any]:
        """Get cached value."""
        if not self.enabled:
            return None
        return self._store.get(cache_key)

    def set(self, cache_key: str, value: Any, ttl_minutes: Optional[int] = None):
        """Cache a value."""
        if not self.enabled:
            return
        self._store.set(cache_key, value, ttl_minutes=ttl_minutes)

    def clear(self):
        """Drop every cached entry."""
        self._store.clear()

    def get_status(self) -> Dict[str, Any]:
        """Get cache status for health endpoint."""
        stats = self._store.get_stats() if self._store else {}
        return {
            "enabled": self.enabled,
            "type": "in_memory",
            "ttl_minutes": CACHE_TTL_MINUTES,
            "entries": stats.get("entries", 0),
        }


# Global instance
cache_manager = CacheManager()


def get_cache_key(namespace: str, **params) -> str:
    """Convenience function to generate cache key."""
    return cache_manager.generate_cache_key(namespace, params)

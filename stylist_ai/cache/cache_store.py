"""
Cache Store (v2.0.0)
In-process TTL store for external lookup results.
"""
import time
import threading
import logging
from typing import Dict, Any, Optional, Tuple

logger = logging.getLogger(__name__)


class CacheStore:
    """Thread-safe in-memory cache with per-entry expiry."""

    def __init__(self, ttl_minutes: int = 30, max_entries: int = 2048):
        """
        Initialize cache store.

        Args:
            ttl_minutes: Default time-to-live in minutes
            max_entries: Oldest entries are dropped beyond this size
        """
        self.ttl_seconds = ttl_minutes * 60
        self.max_entries = max_entries
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, cache_key: str) -> Optional[Any]:
        """
        Get cached data if it exists and has not expired.

        Args:
            cache_key: Cache key

        Returns:
            Cached value or None
        """
        with self._lock:
            entry = self._entries.get(cache_key)
            if entry is None:
                return None

            expires_at, value = entry
            if time.monotonic() > expires_at:
                logger.debug(f"Cache expired: {cache_key[:24]}...")
                del self._entries[cache_key]
                return None

        logger.debug(f"Cache hit: {cache_key[:24]}...")
        return value

    def set(self, cache_key: str, value: Any, ttl_minutes: Optional[int] = None):
        """
        Save a value.

        Args:
            cache_key: Cache key
            value: Value to cache
            ttl_minutes: Override the store's default TTL
        """
        ttl = self.ttl_seconds if ttl_minutes is None else ttl_minutes * 60
        with self._lock:
            if len(self._entries) >= self.max_entries and cache_key not in self._entries:
                # dicts keep insertion order, so the first key is the oldest
                oldest = next(iter(self._entries))
                del self._entries[oldest]
            self._entries[cache_key] = (time.monotonic() + ttl, value)

    def delete(self, cache_key: str):
        with self._lock:
            self._entries.pop(cache_key, None)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def clear_expired(self) -> int:
        """
        Remove all expired cache entries.

        Returns:
            Number of entries removed
        """
        now = time.monotonic()
        with self._lock:
            expired = [key for key, (expires_at, _) in self._entries.items() if now > expires_at]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.info(f"Removed {len(expired)} expired cache entries")
        return len(expired)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            entries = len(self._entries)
        return {
            "entries": entries,
            "max_entries": self.max_entries,
            "ttl_minutes": self.ttl_seconds // 60,
        }

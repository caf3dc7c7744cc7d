"""
Services - Response Cache

TTL-based cache for material permissions and metadata responses.
"""

from typing import Any, Optional
from cachetools import TTLCache
import threading

from material_engine.config import get_settings


class ResponseCache:
    """TTL cache for slowly changing per-material responses."""

    def __init__(self, settings=None):
        self.settings = settings or get_settings()
        self._lock = threading.Lock()
        self._cache = TTLCache(
            maxsize=self.settings.cache.max_entries,
            ttl=self.settings.cache.ttl_metadata,
        )

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key, e.g. "permissions:<material id>"

        Returns:
            Cached value or None
        """
        if not self.settings.cache.enabled:
            return None

        with self._lock:
            return self._cache.get(key)

    def set(self, key: str, value: Any) -> None:
        """Store a value unless caching is disabled."""
        if not self.settings.cache.enabled:
            return

        with self._lock:
            self._cache[key] = value

    def delete(self, key: str) -> None:
        """Delete a key from cache."""
        with self._lock:
            self._cache.pop(key, None)

    def get_stats(self) -> dict:
        """Get cache statistics."""
        return {
            "size": len(self._cache),
            "maxsize": self._cache.maxsize,
            "ttl": self._cache.ttl,
            "enabled": self.settings.cache.enabled,
        }

"""
Caching Utilities
=================
Cache-aside helpers for the catalog read paths.

Features:
- In-memory store with TTL (Time To Live) and LRU eviction
- Prefix deletion for precise invalidation of a key space
- Fail-soft accessor: a broken cache never fails a request

Usage:
    from moviecatalog.utils.cache import cache_service

    movies = cache_service.get_or_populate(
        "movie-genres",
        lambda: load_genres(db),
        ttl=3600,
    )

    # Invalidate a single key or a whole key space
    cache_service.delete("movie-detail:42")
    cache_service.delete_prefix("movie-listing:")

    # Clear all cache
    cache_service.reset()
"""
from typing import Any, Callable, Optional
from collections import OrderedDict
from datetime import datetime, timedelta
from threading import RLock
import os
import logging

from dotenv import load_dotenv

load_dotenv()
logger = logging.getLogger(__name__)

CACHE_MAX_SIZE = int(os.getenv("CACHE_MAX_SIZE", 1000))
CACHE_INVALIDATION_MODE = os.getenv("CACHE_INVALIDATION_MODE", "prefix").lower()


class CacheStore:
    """
    Simple in-memory cache with TTL and LRU eviction.
    Shared by all request threads of one process; not shared across workers.
    """

    def __init__(self, max_size: int = 1000):
        """
        Initialize cache store.

        Args:
            max_size: Maximum number of items in cache (LRU eviction)
        """
        self._cache: OrderedDict = OrderedDict()
        self._max_size = max_size
        self._lock = RLock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache if exists and not expired.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found/expired
        """
        with self._lock:
            if key not in self._cache:
                self._misses += 1
                return None

            value, expiry = self._cache[key]

            # Check if expired
            if expiry and datetime.now() > expiry:
                del self._cache[key]
                self._misses += 1
                return None

            # Move to end (LRU)
            self._cache.move_to_end(key)
            self._hits += 1
            return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """
        Set value in cache with optional TTL.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds (None = no expiration)
        """
        expiry = datetime.now() + timedelta(seconds=ttl) if ttl is not None else None

        with self._lock:
            self._cache[key] = (value, expiry)
            self._cache.move_to_end(key)

            # Evict oldest if over max_size (LRU)
            if len(self._cache) > self._max_size:
                oldest_key = next(iter(self._cache))
                del self._cache[oldest_key]
                logger.debug(f"Evicted cache key: {oldest_key}")

    def delete(self, key: str) -> None:
        """Delete a specific cache key."""
        with self._lock:
            self._cache.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        """Delete every key starting with prefix. Returns the number of keys removed."""
        with self._lock:
            doomed = [key for key in self._cache if key.startswith(prefix)]
            for key in doomed:
                del self._cache[key]
        return len(doomed)

    def clear(self) -> None:
        """Clear all cache."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def get_stats(self) -> dict:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache stats
        """
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0

            return {
                'size': len(self._cache),
                'max_size': self._max_size,
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': f"{hit_rate:.2f}%"
            }


class CacheService:
    """
    Fail-soft accessor over a cache store.

    Every operation catches store errors, logs them and degrades to
    "cache empty" for reads or "no-op" for writes. Nothing here raises.
    """

    def __init__(self, store=None, invalidation_mode: str = CACHE_INVALIDATION_MODE):
        self.store = store if store is not None else CacheStore(max_size=CACHE_MAX_SIZE)
        self.invalidation_mode = invalidation_mode

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on a miss or store failure."""
        try:
            value = self.store.get(key)
        except Exception as e:
            logger.error(f"Error getting cache key {key}: {str(e)}")
            return None

        if value is not None:
            logger.debug(f"Cache hit for key: {key}")
        else:
            logger.debug(f"Cache miss for key: {key}")
        return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        try:
            self.store.set(key, value, ttl)
            logger.debug(f"Cached value for key: {key}")
        except Exception as e:
            logger.error(f"Error setting cache key {key}: {str(e)}")

    def delete(self, key: str) -> None:
        try:
            self.store.delete(key)
            logger.debug(f"Deleted cache key: {key}")
        except Exception as e:
            logger.error(f"Error deleting cache key {key}: {str(e)}")

    def reset(self) -> None:
        """Drop every key in the store."""
        try:
            self.store.clear()
            logger.info("Cache cleared")
        except Exception as e:
            logger.error(f"Error clearing cache: {str(e)}")

    def delete_prefix(self, prefix: str) -> None:
        """
        Invalidate a whole key space.

        Stores without prefix deletion get a full reset instead, which
        over-invalidates but never leaves a stale listing behind.
        """
        delete_prefix = getattr(self.store, "delete_prefix", None)
        if delete_prefix is None:
            logger.warning(f"Cache store cannot delete by prefix, resetting cache for '{prefix}'")
            self.reset()
            return

        try:
            removed = delete_prefix(prefix)
            logger.debug(f"Invalidated {removed} cache keys with prefix: {prefix}")
        except Exception as e:
            logger.error(f"Error invalidating cache prefix {prefix}: {str(e)}")

    def invalidate_space(self, prefix: str) -> None:
        """Invalidate a key space using the configured policy ('prefix' or 'reset')."""
        if self.invalidation_mode == "reset":
            logger.info(f"Invalidating '{prefix}' key space with full cache reset")
            self.reset()
        else:
            self.delete_prefix(prefix)

    def get_or_populate(self, key: str, producer: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """
        Cache-aside read.

        Returns the cached value if present, otherwise calls producer once,
        caches its result and returns it. Errors raised by producer propagate;
        errors raised by the store do not.
        """
        value = self.get(key)
        if value is not None:
            return value

        value = producer()
        if value is not None:
            self.set(key, value, ttl)
        return value

    def stats(self) -> dict:
        try:
            return self.store.get_stats()
        except Exception as e:
            logger.error(f"Error reading cache stats: {str(e)}")
            return {}


# Global cache instance
cache_service = CacheService()


def get_cache_service() -> CacheService:
    """Return the process-wide cache accessor."""
    return cache_service

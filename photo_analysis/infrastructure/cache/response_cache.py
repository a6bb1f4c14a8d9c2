"""
Analysis response cache with TTL support.

Caches completed analysis results so an identical (photo, type, user)
request is answered without calling the provider again.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


@dataclass
class CacheEntry:
    key: str
    data: Any
    timestamp: float

    def is_expired(self, now: float, ttl_seconds: float) -> bool:
        return now - self.timestamp >= ttl_seconds


class ResponseCache:
    """
    In-memory response cache with TTL.

    Expired entries are dropped lazily on read and by sweep(). Every
    operation is synchronous, so on a single event loop sweep() never
    blocks or interleaves with get()/put().

    Example:
        >>> cache = ResponseCache(ttl_seconds=60)
        >>> cache.put("ai_meal_p1_u1", {"estimatedCalories": 300})
        >>> cache.get("ai_meal_p1_u1")
        {'estimatedCalories': 300}
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize cache.

        Args:
            ttl_seconds: Entry lifetime (default 24 hours)
            clock: Time source in seconds, injectable for tests
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._stats = {"hits": 0, "misses": 0}

    def get(self, key: str) -> Optional[Any]:
        """Get cached data.

        Args:
            key: Cache key

        Returns:
            Cached data, or None on miss or expiry
        """
        entry = self._entries.get(key)

        if entry is None:
            self._stats["misses"] += 1
            logger.debug("Cache miss", key=key)
            return None

        if entry.is_expired(self._clock(), self.ttl_seconds):
            self._stats["misses"] += 1
            logger.debug("Cache expired", key=key)
            self._entries.pop(key, None)
            return None

        self._stats["hits"] += 1
        logger.debug("Cache hit", key=key)
        return entry.data

    def put(self, key: str, data: Any) -> None:
        """Store data under key with the current timestamp, overwriting."""
        self._entries[key] = CacheEntry(key=key, data=data, timestamp=self._clock())
        logger.debug("Cached response", key=key, ttl=self.ttl_seconds)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def sweep(self) -> int:
        """Remove expired entries.

        Iterates over a snapshot of the entries.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired_keys = [
            key
            for key, entry in list(self._entries.items())
            if entry.is_expired(now, self.ttl_seconds)
        ]

        for key in expired_keys:
            self._entries.pop(key, None)

        if expired_keys:
            logger.info("Cleaned up expired AI cache entries", count=len(expired_keys))

        return len(expired_keys)

    def clear(self) -> None:
        """Clear all cache entries."""
        self._entries.clear()
        logger.info("Cache cleared")

    def size(self) -> int:
        """Number of stored entries, including not yet swept expired ones."""
        return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        """Hit/miss statistics.

        Example:
            >>> ResponseCache().stats()["hit_rate_percent"]
            0
        """
        total = self._stats["hits"] + self._stats["misses"]
        hit_rate = (self._stats["hits"] / total * 100) if total > 0 else 0

        return {
            **self._stats,
            "size": self.size(),
            "ttl_seconds": self.ttl_seconds,
            "hit_rate_percent": round(hit_rate, 2),
        }

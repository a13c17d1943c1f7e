"""
ingestion/rpc/cache.py

TimedCache - in-memory key/value store with a fixed per-instance TTL.

Entries are evicted lazily: an expired entry is dropped on the read that
finds it, there is no background sweeper.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Recommended TTLs (seconds)
TOKEN_INFO_TTL = 300
POOL_INFO_TTL = 300
METADATA_TTL = 600


@dataclass
class CacheEntry(Generic[T]):
    """Represents a cached value with the time it was stored."""
    value: T
    stored_at: float  # seconds, from the cache clock


class TimedCache(Generic[T]):
    """
    Key -> value store where every entry lives for ``ttl`` seconds.

    Features:
    - Thread-safe operations (get/set serialized by an RLock)
    - TTL-based expiration checked on read
    - Hit / miss / eviction counters

    ``get`` returns None for a missing or expired key; callers treat that as
    "must refetch", never as an error.
    """

    def __init__(
        self,
        ttl: float = TOKEN_INFO_TTL,
        clock: Optional[Callable[[], float]] = None,
        name: str = "cache",
    ):
        """
        Initialize TimedCache.

        Args:
            ttl: Lifetime of each entry (seconds), fixed for the instance
            clock: Time source returning seconds (defaults to time.monotonic)
            name: Label used in log lines
        """
        if ttl < 0:
            raise ValueError(f"ttl must be >= 0, got {ttl}")
        self._ttl = ttl
        self._clock = clock or time.monotonic
        self._name = name
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._lock = threading.RLock()

        # Metrics
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: str) -> Optional[T]:
        """
        Get a value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found/expired
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if self._clock() - entry.stored_at > self._ttl:
                del self._entries[key]
                self._evictions += 1
                self._misses += 1
                logger.debug(f"[cache] {self._name}: evicted expired {key}")
                return None

            self._hits += 1
            return entry.value

    def set(self, key: str, value: T) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""
        with self._lock:
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def clear(self) -> None:
        """Clear all cached values."""
        with self._lock:
            self._entries.clear()

    def get_metrics(self) -> Dict[str, float]:
        """Get cache metrics."""
        with self._lock:
            total = self._hits + self._misses
            return {
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "size": len(self._entries),
                "hit_rate": self._hits / total if total > 0 else 0.0,
            }

    def __contains__(self, key: str) -> bool:
        """Check if key exists (and is not expired)."""
        return self.get(key) is not None

    def __len__(self) -> int:
        # May include entries that have expired but not been read yet.
        with self._lock:
            return len(self._entries)

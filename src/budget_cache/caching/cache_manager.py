"""
Budget Data Cache - TTL-based Caching with LRU Eviction.

Keeps budget figures for simulate mode in memory to minimize API calls.

Design Notes:
    - Entries are keyed by the composite key of a BudgetQuery
    - A read hit refreshes the entry timestamp (recency bump)
    - Capacity is a number of entries; the least recently touched entry
      is evicted before inserting into a full cache
    - Pattern invalidation matches per dimension, absent dimensions are
      wildcards
    - Thread-safe with RLock
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, Protocol, Tuple

from budget_cache.caching.key_codec import CacheKey, encode_key, matches
from budget_cache.config.models import CacheSettings
from budget_cache.domain.entities import BudgetQuery

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class BudgetCacheProtocol(Protocol):
    """Protocol for budget cache implementations."""

    def get(self, query: BudgetQuery) -> Optional[Any]:
        """Get value from cache."""
        ...

    def set(
        self, query: BudgetQuery, data: Any, ttl_seconds: Optional[float] = None
    ) -> None:
        """Set value in cache with optional TTL."""
        ...

    def contains(self, query: BudgetQuery) -> bool:
        """Check for a valid entry without touching recency."""
        ...

    def invalidate(self, **pattern: Any) -> int:
        """Invalidate entries matching a partial query."""
        ...

    def clear(self) -> None:
        """Clear all cache entries."""
        ...


@dataclass
class CacheEntry:
    """A single cache entry with metadata."""

    data: Any
    timestamp: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        """Check if entry has outlived its TTL."""
        return now - self.timestamp >= self.ttl


@dataclass
class CacheStats:
    """Cache statistics."""

    size: int = 0
    max_size: int = 0
    valid_entries: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class BudgetDataCache:
    """
    Bounded TTL cache with LRU eviction policy.

    Cache Key Format:
        "period:<id>|estudio:<id>|groupers:<ids>|payment:<method>"

        Example: "period:2024-05|estudio:all|groupers:1,3|payment:credit"
    """

    def __init__(
        self,
        config: Optional[CacheSettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """
        Initialize cache.

        Args:
            config: Store settings (capacity, default TTL)
            clock: Time source in seconds, defaults to time.monotonic
        """
        self.config = config or CacheSettings()
        self._clock = clock or time.monotonic
        self._cache: OrderedDict[CacheKey, CacheEntry] = OrderedDict()
        self._lock = threading.RLock()
        self._stats = CacheStats()

    @property
    def max_size(self) -> int:
        return self.config.max_size

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def get(self, query: BudgetQuery) -> Optional[Any]:
        """
        Get data from cache.

        Args:
            query: Logical query identifying the data

        Returns:
            Cached data or None if not found/expired
        """
        if not self.config.enabled:
            return None

        key = encode_key(query)
        with self._lock:
            entry = self._cache.get(key)

            if entry is None:
                self._stats.misses += 1
                if self.config.log_access:
                    logger.debug(f"Cache MISS: {key}")
                return None

            now = self._clock()
            if entry.is_expired(now):
                del self._cache[key]
                self._stats.expirations += 1
                self._stats.misses += 1
                if self.config.log_access:
                    logger.debug(f"Cache EXPIRED: {key}")
                return None

            entry.timestamp = now
            self._cache.move_to_end(key)

            self._stats.hits += 1
            if self.config.log_access:
                logger.debug(f"Cache HIT: {key}")

            return entry.data

    def set(
        self,
        query: BudgetQuery,
        data: Any,
        ttl_seconds: Optional[float] = None,
    ) -> None:
        """
        Set data in cache.

        Args:
            query: Logical query identifying the data
            data: Data to cache
            ttl_seconds: TTL in seconds (default TTL if None or 0)
        """
        if not self.config.enabled:
            return

        key = encode_key(query)
        ttl = ttl_seconds or self.config.default_ttl_seconds

        with self._lock:
            # Overwrites never trigger eviction
            self._cache.pop(key, None)

            while len(self._cache) >= self.config.max_size:
                self._evict_lru()

            self._cache[key] = CacheEntry(data=data, timestamp=self._clock(), ttl=ttl)

            if self.config.log_access:
                logger.debug(f"Cache SET: {key} (TTL={ttl}s)")

    def contains(self, query: BudgetQuery) -> bool:
        """Check whether a valid entry exists, without a recency bump."""
        key = encode_key(query)
        with self._lock:
            entry = self._cache.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    def invalidate(self, **pattern: Any) -> int:
        """
        Invalidate all entries matching a partial query.

        Args:
            **pattern: Query fields to match (period_id, estudio_id,
                grouper_ids, payment_method). None matches the "all"
                token; omitted fields match anything.

        Returns:
            Number of entries invalidated

        Raises:
            ValueError: If pattern names an unknown dimension
        """
        with self._lock:
            keys_to_remove = [k for k in self._cache if matches(k, pattern)]
            for key in keys_to_remove:
                del self._cache[key]

        if keys_to_remove:
            logger.debug(
                f"Cache INVALIDATED {len(keys_to_remove)} entries matching {pattern}"
            )
        return len(keys_to_remove)

    def cleanup(self) -> int:
        """
        Remove every entry whose TTL has elapsed.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._cache.items() if e.is_expired(now)]
            for key in expired:
                del self._cache[key]
            self._stats.expirations += len(expired)

        if expired:
            logger.debug(f"Cache CLEANUP removed {len(expired)} expired entries")
        return len(expired)

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._cache.clear()
        logger.info("Cache CLEARED")

    def evict_lru(self) -> Optional[CacheKey]:
        """
        Evict the least recently touched entry.

        Returns:
            Evicted key, or None if the cache is empty
        """
        with self._lock:
            return self._evict_lru()

    def get_stats(self) -> CacheStats:
        """Get cache statistics."""
        with self._lock:
            now = self._clock()
            return CacheStats(
                size=len(self._cache),
                max_size=self.config.max_size,
                valid_entries=sum(
                    1 for e in self._cache.values() if not e.is_expired(now)
                ),
                hits=self._stats.hits,
                misses=self._stats.misses,
                evictions=self._stats.evictions,
                expirations=self._stats.expirations,
            )

    def _iter_entries(self) -> Iterator[Tuple[CacheKey, CacheEntry]]:
        """Snapshot of (key, entry) pairs."""
        with self._lock:
            return iter(list(self._cache.items()))

    def _evict_lru(self) -> Optional[CacheKey]:
        """Evict oldest entry (internal, must hold lock)."""
        if not self._cache:
            return None
        # min() keeps the first of equal timestamps, i.e. the earliest touched
        key = min(self._cache, key=lambda k: self._cache[k].timestamp)
        del self._cache[key]
        self._stats.evictions += 1
        logger.debug(f"Cache EVICTED (LRU): {key}")
        return key

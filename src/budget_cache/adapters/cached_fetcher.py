"""
Budget Cache Service - Read-Through Wrapper for Budget Fetches.

Wraps any async budget fetch function with caching, and offers the
lifecycle hooks the dashboard calls on period/estudio change and after
budget records are mutated.

Design Notes:
    - Decorator/Wrapper pattern around caller-supplied fetch functions
    - Errors from the wrapped fetch propagate and are never cached
    - Preload and warm-up run as fire-and-forget background tasks
    - Feeds hit/miss/API-call signals to the performance manager and
      every served query to the prefetcher
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    TypeVar,
)

import psutil

from budget_cache.caching.cache_manager import BudgetDataCache
from budget_cache.caching.key_codec import CacheKey, encode_key
from budget_cache.caching.prefetcher import IntelligentCachePrefetcher
from budget_cache.config.models import BudgetCacheConfig
from budget_cache.domain.entities import PAYMENT_ALL, BudgetQuery
from budget_cache.observability.performance_manager import (
    SimulateModePerformanceManager,
)
from budget_cache.resilience.background import BackgroundTaskRunner

logger = logging.getLogger(__name__)

T = TypeVar("T")

FetchFunction = Callable[[BudgetQuery], Awaitable[T]]


class BudgetCacheService:
    """
    Read-through caching for budget data fetches.

    Usage:
        service = create_budget_cache_service()
        load_budget = service.with_budget_cache(api.fetch_budget)

        # First call: cache miss, fetches from the API
        data = await load_budget(BudgetQuery(period_id="2024-05"))

        # Second call with same query: cache hit
        data = await load_budget(BudgetQuery(period_id="2024-05"))
    """

    def __init__(
        self,
        cache: BudgetDataCache,
        prefetcher: IntelligentCachePrefetcher,
        monitor: SimulateModePerformanceManager,
        runner: BackgroundTaskRunner,
        config: Optional[BudgetCacheConfig] = None,
        observability: Optional[Any] = None,
    ) -> None:
        """
        Initialize service.

        Args:
            cache: Store shared by all wrapped fetches
            prefetcher: Access-pattern prefetcher fed after each serve
            monitor: Performance manager fed with hit/miss/API signals
            runner: Runner owning background warm/preload tasks
            config: Root configuration
            observability: ObservabilityManager for structured events
        """
        self.cache = cache
        self.prefetcher = prefetcher
        self.monitor = monitor
        self.runner = runner
        self.config = config or BudgetCacheConfig()
        self.observability = observability
        self._in_flight: Dict[CacheKey, asyncio.Future] = {}
        self._cleanup_task: Optional[asyncio.Task] = None

    # =========================================================================
    # Read-through
    # =========================================================================

    def with_budget_cache(
        self,
        fetch_fn: FetchFunction,
        ttl_seconds: Optional[float] = None,
    ) -> Callable[[BudgetQuery], Awaitable[Any]]:
        """
        Wrap a fetch function with read-through caching.

        Args:
            fetch_fn: Async function fetching data for a query
            ttl_seconds: TTL for stored results (store default if None)

        Returns:
            Async function with the same signature as fetch_fn
        """

        async def cached_fetch(query: BudgetQuery) -> Any:
            return await self.fetch(query, fetch_fn, ttl_seconds)

        return cached_fetch

    async def fetch(
        self,
        query: BudgetQuery,
        fetch_fn: FetchFunction,
        ttl_seconds: Optional[float] = None,
    ) -> Any:
        """
        Serve a query from cache, fetching and storing it on a miss.

        Raises:
            Exception: Whatever fetch_fn raises, unchanged
        """
        cached = self.cache.get(query)
        if cached is not None:
            self.monitor.record_cache_hit()
            self._emit("cache_hit", query)
            self.prefetcher.record_access(query, self._counted(fetch_fn))
            return cached

        self.monitor.record_cache_miss()
        self._emit("cache_miss", query)

        if self.config.fetching.single_flight:
            data = await self._shared_fetch(query, fetch_fn, ttl_seconds)
        else:
            data = await self._fetch_and_store(query, fetch_fn, ttl_seconds)

        self.prefetcher.record_access(query, self._counted(fetch_fn))
        return data

    async def _fetch_and_store(
        self,
        query: BudgetQuery,
        fetch_fn: FetchFunction,
        ttl_seconds: Optional[float],
    ) -> Any:
        fetch_start = time.perf_counter()
        data = await self._counted(fetch_fn)(query)
        self.cache.set(query, data, ttl_seconds)

        if self.observability:
            self.observability.record_timing(
                "budget_fetch_seconds",
                time.perf_counter() - fetch_start,
                tags={"period": str(query.period_id)},
            )
        return data

    def _counted(self, fetch_fn: FetchFunction) -> FetchFunction:
        """Wrap fetch_fn so every call counts as a network call."""

        async def counted_fetch(query: BudgetQuery) -> Any:
            self.monitor.record_api_call()
            if self.observability:
                self.observability.record_count("api_calls", 1)
            return await fetch_fn(query)

        return counted_fetch

    async def _shared_fetch(
        self,
        query: BudgetQuery,
        fetch_fn: FetchFunction,
        ttl_seconds: Optional[float],
    ) -> Any:
        """Join an identical in-flight fetch, or start one."""
        key = encode_key(query)
        pending = self._in_flight.get(key)
        if pending is None:
            pending = asyncio.ensure_future(
                self._fetch_and_store(query, fetch_fn, ttl_seconds)
            )
            self._in_flight[key] = pending
            pending.add_done_callback(lambda _: self._in_flight.pop(key, None))
        else:
            logger.debug(f"Joining in-flight fetch: {key}")
        return await asyncio.shield(pending)

    # =========================================================================
    # Background warming
    # =========================================================================

    def preload_budget_data(
        self,
        period_id: str,
        estudio_id: Optional[int] = None,
        fetch_fn: Optional[FetchFunction] = None,
    ) -> List[asyncio.Task]:
        """
        Preload the period-wide view (all groupers, all payment methods)
        in the background.

        Returns:
            Spawned tasks (callers are not expected to await them)
        """
        if fetch_fn is None:
            return []

        query = BudgetQuery(period_id=period_id, estudio_id=estudio_id)
        key = encode_key(query)
        return [
            self.runner.spawn(
                self._preload_one(query, fetch_fn),
                name=f"preload:{key}",
                context={"key": key},
            )
        ]

    def warm_simulate_mode_cache(
        self,
        period_id: str,
        estudio_id: Optional[int] = None,
        fetch_fn: Optional[FetchFunction] = None,
    ) -> List[asyncio.Task]:
        """
        Warm simulate-mode queries in the background.

        Later queries are delayed by index * stagger_seconds and results use
        the longer simulate-mode TTL.

        Returns:
            Spawned tasks (callers are not expected to await them)
        """
        if fetch_fn is None:
            return []

        warming = self.config.warming
        # Period-wide view first, then one view per configured payment method
        candidates = [
            BudgetQuery(period_id=period_id, estudio_id=estudio_id, payment_method=m)
            for m in [PAYMENT_ALL, *warming.payment_methods]
        ]

        return [
            self.runner.spawn(
                self._warm_one(query, fetch_fn, index * warming.stagger_seconds),
                name=f"warm:{encode_key(query)}",
                context={"key": encode_key(query)},
            )
            for index, query in enumerate(self._unique_queries(candidates))
        ]

    async def _preload_one(self, query: BudgetQuery, fetch_fn: FetchFunction) -> None:
        if self.cache.contains(query):
            return
        await self._fetch_and_store(query, fetch_fn, None)

    async def _warm_one(
        self,
        query: BudgetQuery,
        fetch_fn: FetchFunction,
        delay_seconds: float,
    ) -> None:
        if self.cache.contains(query):
            return
        if delay_seconds > 0:
            await asyncio.sleep(delay_seconds)

        await self._fetch_and_store(
            query, fetch_fn, self.config.warming.simulate_ttl_seconds
        )
        self.prefetcher.record_access(query, self._counted(fetch_fn))

    @staticmethod
    def _unique_queries(queries: List[BudgetQuery]) -> List[BudgetQuery]:
        """Drop queries that encode to an already listed key (e.g. "all" in
        the configured payment methods)."""
        seen = set()
        unique = []
        for query in queries:
            key = encode_key(query)
            if key not in seen:
                seen.add(key)
                unique.append(query)
        return unique

    # =========================================================================
    # Invalidation and housekeeping
    # =========================================================================

    def invalidate_budget_cache(
        self,
        period_id: Optional[str] = None,
        estudio_id: Optional[int] = None,
    ) -> int:
        """
        Invalidate cached data after budget records change.

        Args:
            period_id: Period to invalidate; everything is cleared if None
            estudio_id: Restrict to one estudio; all estudios if None

        Returns:
            Number of entries removed
        """
        if period_id is None:
            removed = len(self.cache)
            self.cache.clear()
            return removed

        pattern: Dict[str, Any] = {"period_id": period_id}
        if estudio_id is not None:
            pattern["estudio_id"] = estudio_id
        return self.cache.invalidate(**pattern)

    def start_cleanup(
        self, interval_seconds: Optional[float] = None
    ) -> Callable[[], None]:
        """
        Start periodic removal of expired entries.

        Args:
            interval_seconds: Sweep interval (config value if None)

        Returns:
            Callable stopping the sweep
        """
        interval = interval_seconds or self.config.cache.cleanup_interval_seconds
        self.stop_cleanup()
        self._cleanup_task = asyncio.get_running_loop().create_task(
            self._cleanup_loop(interval), name="budget-cache-cleanup"
        )
        logger.info(f"Cache cleanup started (every {interval}s)")
        return self.stop_cleanup

    def stop_cleanup(self) -> None:
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            self._cleanup_task = None
            logger.info("Cache cleanup stopped")

    async def _cleanup_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.cache.cleanup()

    def handle_memory_pressure(self) -> int:
        """
        Evict least recently used entries down to half the capacity.

        Returns:
            Number of entries evicted
        """
        target_size = self.cache.max_size // 2
        evicted = 0
        while len(self.cache) > target_size:
            if self.cache.evict_lru() is None:
                break
            evicted += 1

        if evicted:
            logger.warning(f"Memory pressure: evicted {evicted} cache entries")
            if self.observability:
                self.observability.record_count("cache_evictions", evicted)
        return evicted

    def check_memory_pressure(self, used_bytes: Optional[int] = None) -> bool:
        """
        Relieve memory pressure when usage exceeds the configured threshold.

        Args:
            used_bytes: Current usage; process RSS if None

        Returns:
            True if entries were shed
        """
        if used_bytes is None:
            used_bytes = psutil.Process().memory_info().rss

        if used_bytes <= self.config.memory_pressure_threshold_bytes:
            return False

        self.handle_memory_pressure()
        return True

    def get_cache_stats(self) -> Dict[str, Any]:
        """Get store, prefetcher and background statistics."""
        cache_stats = self.cache.get_stats()
        prefetch_stats = self.prefetcher.get_stats()

        if self.observability:
            self.observability.record_gauge("cache_size", float(cache_stats.size))
            self.observability.record_gauge("cache_hit_rate", cache_stats.hit_rate)

        return {
            "cache": {
                "size": cache_stats.size,
                "max_size": cache_stats.max_size,
                "valid_entries": cache_stats.valid_entries,
                "hits": cache_stats.hits,
                "misses": cache_stats.misses,
                "hit_rate": cache_stats.hit_rate,
                "evictions": cache_stats.evictions,
                "expirations": cache_stats.expirations,
            },
            "prefetch": {
                "patterns": prefetch_stats.patterns,
                "queue_size": prefetch_stats.queue_size,
                "scheduled": prefetch_stats.scheduled,
                "fetched": prefetch_stats.fetched,
            },
            "background": {
                "pending": self.runner.pending_count,
                "dead_letters": len(self.runner.dead_letters),
            },
        }

    def _emit(self, event_type: str, query: BudgetQuery) -> None:
        if self.observability:
            self.observability.log_event(
                event_type, {"key": encode_key(query)}, level="debug"
            )

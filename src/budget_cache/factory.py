"""
Composition Root - Builds One Cache Stack per Session.

The store, prefetcher, performance manager and background runner are
explicitly constructed here and injected into BudgetCacheService, instead of
living as module-level singletons.
"""

from __future__ import annotations

from typing import Any, Optional

from budget_cache.adapters.cached_fetcher import BudgetCacheService, FetchFunction
from budget_cache.caching.cache_manager import BudgetDataCache, Clock
from budget_cache.caching.compression import AdvancedBudgetCache
from budget_cache.caching.prefetcher import IntelligentCachePrefetcher
from budget_cache.config.models import BudgetCacheConfig
from budget_cache.observability.performance_manager import (
    SimulateModePerformanceManager,
)
from budget_cache.resilience.background import BackgroundTaskRunner


def create_budget_cache_service(
    config: Optional[BudgetCacheConfig] = None,
    fetch_fn: Optional[FetchFunction] = None,
    compressed: bool = True,
    observability: Optional[Any] = None,
    clock: Optional[Clock] = None,
) -> BudgetCacheService:
    """
    Create a fully wired BudgetCacheService.

    Args:
        config: Root configuration (defaults if None)
        fetch_fn: Default fetch for prefetches not tied to a wrapped fetch
        compressed: Use AdvancedBudgetCache instead of BudgetDataCache
        observability: ObservabilityManager for structured events
        clock: Time source for the store (seconds)

    Returns:
        Service bundling the store, prefetcher, monitor and runner
    """
    config = config or BudgetCacheConfig()

    cache: BudgetDataCache
    if compressed:
        # The compressing store has its own capacity and default TTL
        store_settings = config.cache.model_copy(
            update={
                "max_size": config.compression.max_size,
                "default_ttl_seconds": config.compression.default_ttl_seconds,
            }
        )
        cache = AdvancedBudgetCache(
            compression=config.compression,
            config=store_settings,
            clock=clock,
        )
    else:
        cache = BudgetDataCache(config=config.cache, clock=clock)

    runner = BackgroundTaskRunner(observability=observability)
    prefetcher = IntelligentCachePrefetcher(
        cache,
        runner,
        fetch_fn=fetch_fn,
        config=config.prefetch,
    )
    monitor = SimulateModePerformanceManager(config.performance)

    return BudgetCacheService(
        cache=cache,
        prefetcher=prefetcher,
        monitor=monitor,
        runner=runner,
        config=config,
        observability=observability,
    )

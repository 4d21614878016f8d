"""
Budget Cache - Data Caching and Performance Adaptation for Simulate Mode.

Sits between the budgeting dashboard's simulate-mode screens and the
network layer that supplies budget figures.

Main Components:
    - domain: BudgetQuery, the logical identity of a request
    - caching: Key codec, TTL/LRU store, compressing store, prefetcher
    - adapters: Read-through fetch wrapper and lifecycle hooks
    - observability: Performance manager (strategy flags, grade) and
      structured events
    - resilience: Fire-and-forget background tasks with dead letters
    - config: Pydantic models and YAML loader

Example:
    >>> from budget_cache import BudgetQuery, create_budget_cache_service
    >>> service = create_budget_cache_service()
    >>> load_budget = service.with_budget_cache(api.fetch_budget)
    >>> data = await load_budget(BudgetQuery(period_id="2024-05", estudio_id=3))
    >>> service.monitor.get_performance_grade()  # one cold miss, hit rate 0
    'B'
"""

import logging

from budget_cache.adapters.cached_fetcher import BudgetCacheService
from budget_cache.caching.cache_manager import BudgetDataCache
from budget_cache.caching.compression import AdvancedBudgetCache
from budget_cache.caching.prefetcher import IntelligentCachePrefetcher
from budget_cache.domain.entities import BudgetQuery
from budget_cache.factory import create_budget_cache_service
from budget_cache.observability.performance_manager import (
    SimulateModePerformanceManager,
)

__version__ = "0.2.0"


def configure_logging(
    level: int = logging.INFO,
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
) -> None:
    """
    Configure logging for Budget Cache.

    Call this at application startup to see log messages.
    By default, only WARNING and above are visible.

    Args:
        level: Logging level (default: INFO)
        format: Log message format

    Example:
        >>> import budget_cache
        >>> budget_cache.configure_logging(logging.DEBUG)
    """
    logging.basicConfig(
        level=level,
        format=format,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("budget_cache").setLevel(level)


__all__ = [
    "AdvancedBudgetCache",
    "BudgetCacheService",
    "BudgetDataCache",
    "BudgetQuery",
    "IntelligentCachePrefetcher",
    "SimulateModePerformanceManager",
    "configure_logging",
    "create_budget_cache_service",
]

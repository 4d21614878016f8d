"""
Adapters - Integration Points for Dashboard Data Hooks.

Adapters:
    - BudgetCacheService: Read-through wrapper, preload/warm helpers,
      invalidation, periodic cleanup and memory-pressure relief
"""

from budget_cache.adapters.cached_fetcher import BudgetCacheService

__all__ = ["BudgetCacheService"]

"""
Caching Layer.

Provides caching infrastructure for simulate-mode budget data:
    - encode_key: Composite key codec for BudgetQuery
    - BudgetDataCache: TTL-based caching with LRU eviction
    - AdvancedBudgetCache: Compression of large uniform arrays
    - IntelligentCachePrefetcher: Access-pattern driven prefetching
"""

from budget_cache.caching.cache_manager import (
    BudgetCacheProtocol,
    BudgetDataCache,
    CacheEntry,
    CacheStats,
)
from budget_cache.caching.compression import (
    AdvancedBudgetCache,
    CompressedPayload,
    EfficiencyMetrics,
)
from budget_cache.caching.key_codec import decode_tokens, encode_key, matches
from budget_cache.caching.prefetcher import IntelligentCachePrefetcher, PrefetchStats

__all__ = [
    "AdvancedBudgetCache",
    "BudgetCacheProtocol",
    "BudgetDataCache",
    "CacheEntry",
    "CacheStats",
    "CompressedPayload",
    "EfficiencyMetrics",
    "IntelligentCachePrefetcher",
    "PrefetchStats",
    "decode_tokens",
    "encode_key",
    "matches",
]

"""
Configuration Package - Models and Loaders.

Configuration Structure:
    - BudgetCacheConfig: Root configuration object
    - CacheSettings: Store capacity, default TTL, cleanup interval
    - CompressionSettings: Size threshold for payload compaction
    - PrefetchSettings: Access threshold and scheduling delay
    - WarmingSettings: Simulate-mode TTL and staggering
    - PerformanceSettings: Metric windows, strategy thresholds, grading

Design Principles:
    - Type-safe via Pydantic
    - Validation on load (fail fast)
    - Support for profiles (e.g. config/profiles/low_memory.yaml)
"""

from budget_cache.config.loader import ConfigLoader, load_config
from budget_cache.config.models import (
    BudgetCacheConfig,
    CacheSettings,
    CompressionSettings,
    FetchSettings,
    GradePolicy,
    PerformanceSettings,
    PrefetchSettings,
    RecommendationThresholds,
    StrategyThresholds,
    WarmingSettings,
)

__all__ = [
    "BudgetCacheConfig",
    "CacheSettings",
    "CompressionSettings",
    "ConfigLoader",
    "FetchSettings",
    "GradePolicy",
    "PerformanceSettings",
    "PrefetchSettings",
    "RecommendationThresholds",
    "StrategyThresholds",
    "WarmingSettings",
    "load_config",
]

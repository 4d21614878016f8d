"""
Configuration Models - Pydantic Models for Type-Safe Config.

All policy constants (capacities, TTLs, prefetch threshold, grade
penalties) are validated at load time using Pydantic.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

MIB = 1024 * 1024


class CacheSettings(BaseModel):
    """Settings for the bounded TTL/LRU store."""

    enabled: bool = True
    max_size: int = Field(default=50, ge=1)
    default_ttl_seconds: float = Field(default=300.0, gt=0)
    cleanup_interval_seconds: float = Field(default=600.0, gt=0)
    log_access: bool = False


class CompressionSettings(BaseModel):
    """Settings for the compressing store."""

    enabled: bool = True
    threshold_bytes: int = Field(default=1000, ge=0)
    max_size: int = Field(default=75, ge=1)
    default_ttl_seconds: float = Field(default=480.0, gt=0)


class PrefetchSettings(BaseModel):
    """Settings for access-pattern prefetching."""

    enabled: bool = True
    access_threshold: int = Field(default=3, ge=0)
    delay_seconds: float = Field(default=0.1, ge=0)


class WarmingSettings(BaseModel):
    """Settings for simulate-mode cache warming."""

    simulate_ttl_seconds: float = Field(default=1200.0, gt=0)
    stagger_seconds: float = Field(default=0.15, ge=0)
    payment_methods: List[str] = Field(
        default_factory=lambda: ["credit", "debit", "cash"]
    )


class FetchSettings(BaseModel):
    """Settings for the read-through fetch wrapper."""

    # Concurrent misses on one key share a single fetch when enabled
    single_flight: bool = False


class StrategyThresholds(BaseModel):
    """Thresholds that switch optimization strategy flags on."""

    aggressive_caching_hit_rate: float = Field(default=0.7, ge=0, le=1)
    compression_memory_bytes: float = Field(default=50 * MIB, ge=0)
    animation_reduction_render_ms: float = Field(default=100.0, ge=0)
    memory_optimization_bytes: float = Field(default=30 * MIB, ge=0)
    memory_optimization_min_samples: int = Field(default=10, ge=1)


class GradePolicy(BaseModel):
    """Score deductions and letter buckets for the performance grade."""

    min_hit_rate: float = Field(default=0.8, ge=0, le=1)
    hit_rate_penalty: int = Field(default=20, ge=0)
    max_render_ms: float = Field(default=100.0, ge=0)
    render_penalty: int = Field(default=25, ge=0)
    max_memory_bytes: float = Field(default=50 * MIB, ge=0)
    memory_penalty: int = Field(default=20, ge=0)
    max_animation_ms: float = Field(default=16.67, ge=0)
    animation_penalty: int = Field(default=15, ge=0)
    max_api_calls: int = Field(default=30, ge=0)
    api_calls_penalty: int = Field(default=20, ge=0)
    grade_a: int = 90
    grade_b: int = 80
    grade_c: int = 70
    grade_d: int = 60


class RecommendationThresholds(BaseModel):
    """Thresholds above/below which advisory recommendations are emitted."""

    min_hit_rate: float = Field(default=0.5, ge=0, le=1)
    max_render_ms: float = Field(default=150.0, ge=0)
    max_memory_bytes: float = Field(default=100 * MIB, ge=0)
    max_animation_ms: float = Field(default=20.0, ge=0)
    max_api_calls: int = Field(default=50, ge=0)


class PerformanceSettings(BaseModel):
    """Settings for the adaptive performance monitor."""

    render_window: int = Field(default=50, ge=1)
    memory_window: int = Field(default=20, ge=1)
    animation_window: int = Field(default=30, ge=1)
    strategies: StrategyThresholds = Field(default_factory=StrategyThresholds)
    grading: GradePolicy = Field(default_factory=GradePolicy)
    recommendations: RecommendationThresholds = Field(
        default_factory=RecommendationThresholds,
    )


class BudgetCacheConfig(BaseModel):
    """Root configuration object."""

    version: str = "1.0"
    cache: CacheSettings = Field(default_factory=CacheSettings)
    compression: CompressionSettings = Field(default_factory=CompressionSettings)
    prefetch: PrefetchSettings = Field(default_factory=PrefetchSettings)
    warming: WarmingSettings = Field(default_factory=WarmingSettings)
    fetching: FetchSettings = Field(default_factory=FetchSettings)
    performance: PerformanceSettings = Field(default_factory=PerformanceSettings)
    memory_pressure_threshold_bytes: int = Field(default=50 * MIB, ge=0)

    model_config = {"populate_by_name": True}

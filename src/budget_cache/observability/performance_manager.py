"""
Simulate Mode Performance Manager - Rolling Metrics and Adaptive Flags.

Tracks:
    - Cache hits, misses and network calls (monotonic counters)
    - Render latency, memory samples, animation latency (ring buffers)

Derives:
    - Four optimization strategy flags, recomputed on every render sample
    - A letter grade from fixed penalties
    - Advisory recommendations for a diagnostics panel

Design Notes:
    - All thresholds come from PerformanceSettings
    - Memory samples are in bytes, latencies in milliseconds
    - Recommendations are advisory only, never fed back automatically
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional

import psutil

from budget_cache.config.models import PerformanceSettings

logger = logging.getLogger(__name__)


@dataclass
class OptimizationStrategies:
    """Strategy flags derived from rolling metrics."""

    enable_aggressive_caching: bool = False
    enable_data_compression: bool = False
    enable_animation_reduction: bool = False
    enable_memory_optimization: bool = False


@dataclass
class PerformanceMetrics:
    """Snapshot of derived metrics."""

    cache_hit_rate: float
    avg_render_time: float
    avg_memory_usage: float
    avg_animation_time: float
    api_calls: int
    cache_hits: int
    cache_misses: int
    optimization_strategies: OptimizationStrategies = field(
        default_factory=OptimizationStrategies
    )


def _average(values: Deque[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class SimulateModePerformanceManager:
    """
    Records simulate-mode performance signals and adapts strategy flags.

    Usage:
        monitor = SimulateModePerformanceManager()
        monitor.record_cache_hit()
        monitor.record_render_time(42.0)
        monitor.get_performance_grade()  # "A".."F"
    """

    def __init__(self, config: Optional[PerformanceSettings] = None) -> None:
        """
        Initialize performance manager.

        Args:
            config: Windows, strategy thresholds and grading policy
        """
        self.config = config or PerformanceSettings()
        self.reset()

    def reset(self) -> None:
        """Reset counters, buffers and strategy flags."""
        self._cache_hits = 0
        self._cache_misses = 0
        self._api_calls = 0
        self._render_times: Deque[float] = deque(maxlen=self.config.render_window)
        self._memory_usage: Deque[float] = deque(maxlen=self.config.memory_window)
        self._animation_times: Deque[float] = deque(
            maxlen=self.config.animation_window
        )
        self._strategies = OptimizationStrategies()

    # =========================================================================
    # Recording
    # =========================================================================

    def record_cache_hit(self) -> None:
        self._cache_hits += 1

    def record_cache_miss(self) -> None:
        self._cache_misses += 1

    def record_api_call(self) -> None:
        self._api_calls += 1

    def record_render_time(self, duration_ms: float) -> None:
        """Record a render duration and recompute strategy flags."""
        self._render_times.append(duration_ms)
        self._adjust_optimization_strategies()

    def record_memory_usage(self, used_bytes: float) -> None:
        self._memory_usage.append(used_bytes)

    def record_animation_performance(self, frame_ms: float) -> None:
        self._animation_times.append(frame_ms)

    def sample_memory_usage(self) -> int:
        """
        Record the resident memory of the current process.

        Returns:
            Sampled RSS in bytes
        """
        rss = psutil.Process().memory_info().rss
        self.record_memory_usage(rss)
        return rss

    # =========================================================================
    # Derived metrics
    # =========================================================================

    @property
    def render_samples(self) -> List[float]:
        return list(self._render_times)

    @property
    def memory_samples(self) -> List[float]:
        return list(self._memory_usage)

    @property
    def animation_samples(self) -> List[float]:
        return list(self._animation_times)

    def get_metrics(self) -> PerformanceMetrics:
        """Get current derived metrics and strategy flags."""
        total_requests = self._cache_hits + self._cache_misses
        hit_rate = self._cache_hits / total_requests if total_requests > 0 else 0.0

        return PerformanceMetrics(
            cache_hit_rate=hit_rate,
            avg_render_time=_average(self._render_times),
            avg_memory_usage=_average(self._memory_usage),
            avg_animation_time=_average(self._animation_times),
            api_calls=self._api_calls,
            cache_hits=self._cache_hits,
            cache_misses=self._cache_misses,
            optimization_strategies=OptimizationStrategies(**vars(self._strategies)),
        )

    def get_optimization_recommendations(self) -> List[str]:
        """Get human-readable advice for each violated threshold."""
        limits = self.config.recommendations
        metrics = self.get_metrics()
        recommendations: List[str] = []

        if metrics.cache_hit_rate < limits.min_hit_rate:
            recommendations.append(
                "Consider increasing cache TTL or preloading more data"
            )

        if metrics.avg_render_time > limits.max_render_ms:
            recommendations.append(
                "Consider reducing data size or enabling performance mode"
            )

        if metrics.avg_memory_usage > limits.max_memory_bytes:
            recommendations.append(
                "High memory usage detected - consider enabling data compression"
            )

        if metrics.avg_animation_time > limits.max_animation_ms:
            recommendations.append(
                "Animations are running slowly - consider reducing animation complexity"
            )

        if metrics.api_calls > limits.max_api_calls:
            recommendations.append(
                "High number of API calls - consider more aggressive caching"
            )

        return recommendations

    def get_performance_score(self) -> int:
        """Score out of 100 after threshold penalties."""
        policy = self.config.grading
        metrics = self.get_metrics()
        score = 100

        if metrics.cache_hit_rate < policy.min_hit_rate:
            score -= policy.hit_rate_penalty
        if metrics.avg_render_time > policy.max_render_ms:
            score -= policy.render_penalty
        if metrics.avg_memory_usage > policy.max_memory_bytes:
            score -= policy.memory_penalty
        if metrics.avg_animation_time > policy.max_animation_ms:
            score -= policy.animation_penalty
        if metrics.api_calls > policy.max_api_calls:
            score -= policy.api_calls_penalty

        return score

    def get_performance_grade(self) -> str:
        """Bucket the performance score into a letter grade A-F."""
        policy = self.config.grading
        score = self.get_performance_score()

        if score >= policy.grade_a:
            return "A"
        if score >= policy.grade_b:
            return "B"
        if score >= policy.grade_c:
            return "C"
        if score >= policy.grade_d:
            return "D"
        return "F"

    def _adjust_optimization_strategies(self) -> None:
        thresholds = self.config.strategies
        metrics = self.get_metrics()
        previous = OptimizationStrategies(**vars(self._strategies))

        self._strategies.enable_aggressive_caching = (
            metrics.cache_hit_rate < thresholds.aggressive_caching_hit_rate
        )
        self._strategies.enable_data_compression = (
            metrics.avg_memory_usage > thresholds.compression_memory_bytes
        )
        self._strategies.enable_animation_reduction = (
            metrics.avg_render_time > thresholds.animation_reduction_render_ms
        )
        # Sustained pressure: every sample in a full enough window
        self._strategies.enable_memory_optimization = (
            len(self._memory_usage) >= thresholds.memory_optimization_min_samples
            and all(
                usage > thresholds.memory_optimization_bytes
                for usage in self._memory_usage
            )
        )

        if self._strategies != previous:
            logger.info(f"Optimization strategies changed: {self._strategies}")

"""
Observability Package - Performance Monitoring and Structured Events.

Components:
    - SimulateModePerformanceManager: Rolling metrics, strategy flags, grade
    - ObservabilityManager: structlog events, metrics, correlation ids
"""

from budget_cache.observability.observability_manager import (
    ObservabilityManager,
    get_correlation_id,
    set_correlation_id,
)
from budget_cache.observability.performance_manager import (
    OptimizationStrategies,
    PerformanceMetrics,
    SimulateModePerformanceManager,
)

__all__ = [
    "ObservabilityManager",
    "OptimizationStrategies",
    "PerformanceMetrics",
    "SimulateModePerformanceManager",
    "get_correlation_id",
    "set_correlation_id",
]

"""
Observability Manager - Structured Cache Events and Metrics.

Provides:
    - Structured JSON logging via structlog
    - Correlation ID propagation (e.g. one id per dashboard session)
    - Bounded in-memory event and metric history for diagnostics

Design Notes:
    - Correlation ID stored in a ContextVar, so it follows asyncio tasks
    - BudgetCacheService records budget_fetch_seconds (timing), api_calls
      and cache_evictions (counts), cache_size and cache_hit_rate (gauges)
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional

import structlog

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    """Get current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set correlation ID in context, e.g. once per dashboard session."""
    _correlation_id.set(correlation_id)
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


class ObservabilityManager:
    """
    Structured logging and metrics for the cache subsystem.

    Events such as cache_hit, cache_miss and background_failure are logged
    through structlog and kept in a bounded history.
    """

    def __init__(
        self,
        service_name: str = "budget_cache",
        use_json: bool = True,
        log_level: int = logging.INFO,
        max_history: int = 1000,
    ) -> None:
        """
        Initialize observability manager.

        Args:
            service_name: Service name for log entries
            use_json: Render JSON lines instead of console output
            log_level: Logging level
            max_history: Events and samples kept per metric
        """
        self.service_name = service_name
        self.use_json = use_json
        self.log_level = log_level
        self.max_history = max_history
        self._metrics: Dict[str, Deque[Dict[str, Any]]] = {}
        self._events: Deque[Dict[str, Any]] = deque(maxlen=max_history)
        self._lock = threading.Lock()

        self._configure_structlog()
        self._logger = structlog.get_logger(service_name)

    def _configure_structlog(self) -> None:
        """Configure structlog for structured logging."""
        processors = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
        ]

        if self.use_json:
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer())

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(self.log_level),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(),
            cache_logger_on_first_use=True,
        )

    def log_event(
        self,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
        level: str = "info",
    ) -> None:
        """
        Log a structured event.

        Args:
            event_type: Type of event (e.g., "cache_hit", "background_failure")
            data: Additional event data
            level: Log level (debug, info, warning, error)
        """
        event_data = {
            "event_type": event_type,
            "timestamp": datetime.now().isoformat(),
            "correlation_id": get_correlation_id(),
            **(data or {}),
        }

        with self._lock:
            self._events.append(event_data)

        log_method = getattr(self._logger, level.lower(), self._logger.info)
        log_method(event_type, **{k: v for k, v in event_data.items() if k != "event_type"})

    def record_metric(
        self,
        name: str,
        value: float,
        tags: Optional[Dict[str, str]] = None,
        metric_type: str = "gauge",
    ) -> None:
        """
        Record a metric value.

        Args:
            name: Metric name
            value: Metric value
            tags: Additional tags/labels
            metric_type: Type (gauge, counter, histogram)
        """
        metric_entry = {
            "timestamp": datetime.now().isoformat(),
            "value": value,
            "tags": tags or {},
            "type": metric_type,
            "correlation_id": get_correlation_id(),
        }

        with self._lock:
            if name not in self._metrics:
                self._metrics[name] = deque(maxlen=self.max_history)
            self._metrics[name].append(metric_entry)

    def record_timing(
        self,
        name: str,
        duration_seconds: float,
        tags: Optional[Dict[str, str]] = None,
    ) -> None:
        self.record_metric(name, duration_seconds, tags, metric_type="histogram")

    def record_count(
        self,
        name: str,
        value: int,
        tags: Optional[Dict[str, str]] = None,
    ) -> None:
        self.record_metric(name, float(value), tags, metric_type="counter")

    def record_gauge(
        self,
        name: str,
        value: float,
        tags: Optional[Dict[str, str]] = None,
    ) -> None:
        self.record_metric(name, value, tags, metric_type="gauge")

    def get_metrics(self) -> Dict[str, List[Dict[str, Any]]]:
        """Get all recorded metrics."""
        with self._lock:
            return {name: list(entries) for name, entries in self._metrics.items()}

    def get_events(self, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get recorded events, optionally of one type."""
        with self._lock:
            events = list(self._events)
        if event_type is None:
            return events
        return [e for e in events if e["event_type"] == event_type]

    def clear(self) -> None:
        """Clear all recorded metrics and events."""
        with self._lock:
            self._metrics.clear()
            self._events.clear()

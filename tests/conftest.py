"""
Pytest Configuration and Shared Fixtures.

This module contains fixtures available to all tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import pytest

from budget_cache.caching.cache_manager import BudgetDataCache
from budget_cache.caching.compression import AdvancedBudgetCache
from budget_cache.config.models import (
    BudgetCacheConfig,
    CacheSettings,
    CompressionSettings,
    PrefetchSettings,
    WarmingSettings,
)
from budget_cache.domain.entities import BudgetQuery


class FakeClock:
    """Manually advanced time source (seconds)."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingFetcher:
    """Async fetch double that records queries and can fail on demand."""

    def __init__(self, fail_for: Any = None) -> None:
        self.calls: List[BudgetQuery] = []
        self.fail_for = set(fail_for or [])

    async def __call__(self, query: BudgetQuery) -> Dict[str, Any]:
        self.calls.append(query)
        if query.payment_method in self.fail_for:
            raise ConnectionError(f"budget API unavailable for {query.payment_method}")
        return {
            "period": query.period_id,
            "estudio": query.estudio_id,
            "payment": query.payment_method,
            "total": 1250.0,
        }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> BudgetDataCache:
    """Small plain store driven by the fake clock."""
    return BudgetDataCache(CacheSettings(max_size=3, default_ttl_seconds=300), clock=clock)


@pytest.fixture
def advanced_cache(clock: FakeClock) -> AdvancedBudgetCache:
    return AdvancedBudgetCache(
        compression=CompressionSettings(threshold_bytes=1000),
        clock=clock,
    )


@pytest.fixture
def fast_config() -> BudgetCacheConfig:
    """Configuration without scheduling delays, for async tests."""
    return BudgetCacheConfig(
        prefetch=PrefetchSettings(delay_seconds=0),
        warming=WarmingSettings(stagger_seconds=0),
    )


@pytest.fixture
def fetcher() -> RecordingFetcher:
    return RecordingFetcher()


@pytest.fixture
def period_query() -> BudgetQuery:
    return BudgetQuery(period_id="2024-05", estudio_id=5)


@pytest.fixture
def expense_rows() -> List[Dict[str, Any]]:
    """Fifty uniform expense records, well above the compression threshold."""
    return [
        {
            "id": i,
            "category": f"Category {i % 7}",
            "amount": round(10.5 * i, 2),
            "payment_method": "credit" if i % 2 else "debit",
            "grouper_id": i % 4,
        }
        for i in range(50)
    ]


@pytest.fixture
def sample_config_path() -> Path:
    """Path to sample configuration file."""
    return Path(__file__).parent / "fixtures" / "sample_config.yaml"


@pytest.fixture
def fetcher_factory():
    """Build RecordingFetcher instances, e.g. failing for some payment methods."""
    return RecordingFetcher

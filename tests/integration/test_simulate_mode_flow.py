"""
Integration Tests for a Simulate-Mode Dashboard Session.

Tests cover:
    - Warming and preloading followed by cache-served navigation
    - Prefetching of broader views while a user drills down
    - Invalidation after a budget record is edited
    - Performance grading of the whole session
"""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from budget_cache.caching.compression import AdvancedBudgetCache
from budget_cache.config.models import (
    BudgetCacheConfig,
    PrefetchSettings,
    WarmingSettings,
)
from budget_cache.domain.entities import BudgetQuery
from budget_cache.factory import create_budget_cache_service
from budget_cache.observability.observability_manager import ObservabilityManager

pytestmark = pytest.mark.integration


class InMemoryBudgetApi:
    """Budget backend returning expense rows filtered by query."""

    def __init__(self) -> None:
        self.calls: List[BudgetQuery] = []
        self.rows: List[Dict[str, Any]] = [
            {
                "id": i,
                "period_id": "2024-05",
                "estudio_id": 1 + i % 2,
                "grouper_id": i % 4,
                "payment_method": ["credit", "debit", "cash"][i % 3],
                "amount": 25.0 + i,
            }
            for i in range(60)
        ]

    async def fetch_budget(self, query: BudgetQuery) -> List[Dict[str, Any]]:
        self.calls.append(query)
        return [row for row in self.rows if self._selected(row, query)]

    @staticmethod
    def _selected(row: Dict[str, Any], query: BudgetQuery) -> bool:
        if query.period_id is not None and row["period_id"] != query.period_id:
            return False
        if query.estudio_id is not None and row["estudio_id"] != query.estudio_id:
            return False
        if query.has_grouper_scope and row["grouper_id"] not in query.grouper_ids:
            return False
        if query.has_payment_scope and row["payment_method"] != query.payment_method:
            return False
        return True


@pytest.fixture
def api() -> InMemoryBudgetApi:
    return InMemoryBudgetApi()


@pytest.fixture
def observability() -> ObservabilityManager:
    return ObservabilityManager(use_json=True)


@pytest.fixture
def service(observability):
    config = BudgetCacheConfig(
        prefetch=PrefetchSettings(delay_seconds=0),
        warming=WarmingSettings(stagger_seconds=0),
    )
    return create_budget_cache_service(config, observability=observability)


class TestSimulateModeSession:
    """A user opens a period in simulate mode and explores it."""

    @pytest.mark.asyncio
    async def test_warmed_views_are_served_without_network(self, service, api) -> None:
        """
        SCENARIO: Period opened, cache warmed, payment tabs browsed
        EXPECTED: Every tab served from cache with the right rows
        """
        # Arrange
        service.preload_budget_data("2024-05", 1, api.fetch_budget)
        service.warm_simulate_mode_cache("2024-05", 1, api.fetch_budget)
        await service.runner.drain()
        warm_calls = len(api.calls)
        load = service.with_budget_cache(api.fetch_budget)

        # Act
        tabs = {}
        for method in ["all", "credit", "debit", "cash"]:
            query = BudgetQuery(period_id="2024-05", estudio_id=1, payment_method=method)
            tabs[method] = await load(query)

        # Assert
        assert len(api.calls) == warm_calls
        assert len(tabs["all"]) == 30
        assert all(r["payment_method"] == "credit" for r in tabs["credit"])
        assert len(tabs["credit"]) + len(tabs["debit"]) + len(tabs["cash"]) == 30
        assert service.runner.dead_letters == []

    @pytest.mark.asyncio
    async def test_large_views_are_stored_compressed(self, service, api) -> None:
        load = service.with_budget_cache(api.fetch_budget)
        query = BudgetQuery(period_id="2024-05")

        rows = await load(query)
        again = await load(query)

        assert isinstance(service.cache, AdvancedBudgetCache)
        assert again == rows
        assert service.cache.get_efficiency_metrics().compressed_entries == 1

    @pytest.mark.asyncio
    async def test_drilling_down_prefetches_the_broader_view(self, service, api) -> None:
        """
        SCENARIO: User repeatedly filters by two groupers and credit
        EXPECTED: All-groupers and all-payments views fetched in background
        """
        load = service.with_budget_cache(api.fetch_budget)
        narrow = BudgetQuery(
            period_id="2024-05", estudio_id=2, grouper_ids=[3, 1], payment_method="credit"
        )

        for _ in range(4):
            await load(narrow)
        await service.runner.drain()

        assert service.cache.contains(narrow.widen(grouper_ids=()))
        assert service.cache.contains(narrow.widen(payment_method="all"))
        assert len(api.calls) == 3

    @pytest.mark.asyncio
    async def test_editing_a_record_invalidates_the_period(self, service, api) -> None:
        load = service.with_budget_cache(api.fetch_budget)
        may = BudgetQuery(period_id="2024-05", estudio_id=1)
        june = BudgetQuery(period_id="2024-06", estudio_id=1)
        await load(may)
        await load(june)

        api.rows[0]["amount"] = 999.0
        removed = service.invalidate_budget_cache("2024-05", 1)
        refreshed = await load(may)

        assert removed == 1
        assert refreshed[0]["amount"] == 999.0
        assert service.cache.contains(june)

    @pytest.mark.asyncio
    async def test_session_is_graded_and_observed(self, service, api, observability) -> None:
        load = service.with_budget_cache(api.fetch_budget)
        query = BudgetQuery(period_id="2024-05", estudio_id=1)

        for _ in range(10):
            await load(query)
        service.monitor.record_render_time(20.0)
        service.monitor.record_animation_performance(12.0)

        metrics = service.monitor.get_metrics()
        assert metrics.cache_hit_rate == pytest.approx(0.9)
        assert metrics.api_calls == 1
        assert service.monitor.get_performance_grade() == "A"
        assert len(observability.get_events("cache_hit")) == 9
        assert service.get_cache_stats()["cache"]["size"] == 1

"""
Intelligent Cache Prefetcher - Access-Pattern Driven Prefetching.

Counts accesses per cache key. Once a key has been accessed more than the
configured threshold, broader views of the same data are fetched in the
background:

    - a query scoped to specific groupers -> same query, all groupers
    - a query scoped to one payment method -> same query, payment "all"

Design Notes:
    - Access counts are never decremented
    - The prefetch queue only prevents duplicate scheduling; a key leaves
      it once its background attempt finishes, success or failure
    - Background failures are captured by the BackgroundTaskRunner
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from budget_cache.caching.cache_manager import BudgetCacheProtocol
from budget_cache.caching.key_codec import CacheKey, encode_key
from budget_cache.config.models import PrefetchSettings
from budget_cache.domain.entities import PAYMENT_ALL, BudgetQuery
from budget_cache.resilience.background import BackgroundTaskRunner

logger = logging.getLogger(__name__)

FetchFunction = Callable[[BudgetQuery], Awaitable[Any]]


@dataclass
class PrefetchStats:
    """Statistics for prefetcher activity."""

    patterns: int = 0
    queue_size: int = 0
    scheduled: int = 0
    completed: int = 0
    fetched: int = 0


class IntelligentCachePrefetcher:
    """Schedules background population of related, broader-scoped keys."""

    def __init__(
        self,
        cache: BudgetCacheProtocol,
        runner: BackgroundTaskRunner,
        fetch_fn: Optional[FetchFunction] = None,
        config: Optional[PrefetchSettings] = None,
    ) -> None:
        """
        Initialize prefetcher.

        Args:
            cache: Cache that prefetched data is written to
            runner: Runner owning the background prefetch tasks
            fetch_fn: Async fetch used to populate missing keys; without it
                a prefetch only checks the cache
            config: Prefetch threshold and delay
        """
        self.cache = cache
        self.runner = runner
        self.fetch_fn = fetch_fn
        self.config = config or PrefetchSettings()
        self._access_counts: Dict[CacheKey, int] = {}
        self._queue: Set[CacheKey] = set()
        self._scheduled = 0
        self._completed = 0
        self._fetched = 0

    def record_access(
        self,
        query: BudgetQuery,
        fetch_fn: Optional[FetchFunction] = None,
    ) -> List[BudgetQuery]:
        """
        Record one access to a query.

        Args:
            query: Query that was served
            fetch_fn: Fetch used for related prefetches, overriding the
                prefetcher default

        Returns:
            Related queries scheduled for prefetch by this call
        """
        key = encode_key(query)
        count = self._access_counts.get(key, 0) + 1
        self._access_counts[key] = count

        if not self.config.enabled or count <= self.config.access_threshold:
            return []

        return self._schedule_related_prefetch(query, fetch_fn or self.fetch_fn)

    def access_count(self, query: BudgetQuery) -> int:
        return self._access_counts.get(encode_key(query), 0)

    def is_queued(self, query: BudgetQuery) -> bool:
        return encode_key(query) in self._queue

    @staticmethod
    def related_queries(query: BudgetQuery) -> List[BudgetQuery]:
        """Broader views predicted to be needed after a narrow one."""
        related: List[BudgetQuery] = []

        if query.has_grouper_scope:
            related.append(query.widen(grouper_ids=()))

        if query.has_payment_scope:
            related.append(query.widen(payment_method=PAYMENT_ALL))

        return related

    def get_stats(self) -> PrefetchStats:
        return PrefetchStats(
            patterns=len(self._access_counts),
            queue_size=len(self._queue),
            scheduled=self._scheduled,
            completed=self._completed,
            fetched=self._fetched,
        )

    def clear(self) -> None:
        """Forget access patterns and queued keys."""
        self._access_counts.clear()
        self._queue.clear()

    def _schedule_related_prefetch(
        self,
        query: BudgetQuery,
        fetch_fn: Optional[FetchFunction],
    ) -> List[BudgetQuery]:
        scheduled: List[BudgetQuery] = []

        for related in self.related_queries(query):
            key = encode_key(related)
            if key in self._queue:
                continue

            self._queue.add(key)
            try:
                self.runner.spawn(
                    self._execute_prefetch(related, key, fetch_fn),
                    name=f"prefetch:{key}",
                    context={"key": key},
                )
            except RuntimeError:
                self._queue.discard(key)
                raise

            self._scheduled += 1
            scheduled.append(related)
            logger.debug(f"Prefetch scheduled: {key}")

        return scheduled

    async def _execute_prefetch(
        self,
        query: BudgetQuery,
        key: CacheKey,
        fetch_fn: Optional[FetchFunction],
    ) -> None:
        try:
            await asyncio.sleep(self.config.delay_seconds)

            if self.cache.contains(query) or fetch_fn is None:
                return

            data = await fetch_fn(query)
            self.cache.set(query, data)
            self._fetched += 1
            logger.debug(f"Prefetch populated: {key}")
        finally:
            self._queue.discard(key)
            self._completed += 1

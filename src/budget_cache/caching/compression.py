"""
Advanced Budget Cache - Compression for Large Payloads.

Extends BudgetDataCache so that large arrays of uniform records are stored
column-wise: field names once, then one row of values per record.

Design Notes:
    - Only payloads whose JSON size exceeds a threshold are compacted
    - Only lists of dicts sharing the same field names are restructured
    - Callers never see the compacted form; get() rebuilds the records
    - A failing compaction stores the original payload instead
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from budget_cache.caching.cache_manager import BudgetDataCache, Clock
from budget_cache.config.models import CacheSettings, CompressionSettings
from budget_cache.domain.entities import BudgetQuery

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompressedPayload:
    """Column-wise form of an array of uniform records."""

    keys: List[str]
    values: List[List[Any]]
    original_size: int

    @property
    def compressed_size(self) -> int:
        return len(json.dumps({"keys": self.keys, "values": self.values}))

    def restore(self) -> List[dict]:
        """Rebuild the original list of records."""
        return [dict(zip(self.keys, row)) for row in self.values]


@dataclass
class EfficiencyMetrics:
    """Compression effectiveness of the cached payloads."""

    compression_ratio: float
    memory_usage: int
    valid_ratio: float
    compressed_entries: int


def _is_uniform_records(data: Any) -> bool:
    if not isinstance(data, list) or not data:
        return False
    if not all(isinstance(item, dict) for item in data):
        return False
    first_keys = list(data[0].keys())
    return all(list(item.keys()) == first_keys for item in data[1:])


class AdvancedBudgetCache(BudgetDataCache):
    """
    Budget cache that compacts large homogeneous arrays before storage.

    Usage:
        cache = AdvancedBudgetCache()
        cache.set(query, rows)      # stored column-wise if large
        cache.get(query) == rows    # always the original shape
    """

    def __init__(
        self,
        compression: Optional[CompressionSettings] = None,
        config: Optional[CacheSettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """
        Initialize compressing cache.

        Args:
            compression: Compression settings; its max_size and
                default_ttl_seconds apply when config is None
            config: Store settings overriding the compression defaults
            clock: Time source in seconds
        """
        self.compression = compression or CompressionSettings()
        if config is None:
            config = CacheSettings(
                max_size=self.compression.max_size,
                default_ttl_seconds=self.compression.default_ttl_seconds,
            )
        super().__init__(config=config, clock=clock)

    def set(
        self,
        query: BudgetQuery,
        data: Any,
        ttl_seconds: Optional[float] = None,
    ) -> None:
        """Set data in cache, compacting it first when worthwhile."""
        if self.compression.enabled:
            data = self._compress(data)
        super().set(query, data, ttl_seconds)

    def get(self, query: BudgetQuery) -> Optional[Any]:
        """Get data from cache in its original shape."""
        data = super().get(query)
        if isinstance(data, CompressedPayload):
            return data.restore()
        return data

    def get_efficiency_metrics(self) -> EfficiencyMetrics:
        """
        Compute compression metrics over the current entries.

        Returns:
            EfficiencyMetrics where compression_ratio is compressed size over
            original size (1.0 when nothing is compressed)
        """
        stats = self.get_stats()
        total_original = 0
        total_compressed = 0
        compressed_entries = 0

        for _, entry in self._iter_entries():
            if isinstance(entry.data, CompressedPayload):
                compressed_entries += 1
                total_original += entry.data.original_size
                total_compressed += entry.data.compressed_size

        return EfficiencyMetrics(
            compression_ratio=(
                total_compressed / total_original if total_original > 0 else 1.0
            ),
            memory_usage=total_compressed,
            valid_ratio=stats.valid_entries / max(stats.size, 1),
            compressed_entries=compressed_entries,
        )

    def _compress(self, data: Any) -> Any:
        """Return a CompressedPayload for large uniform arrays, else data."""
        try:
            serialized_size = len(json.dumps(data))
            if serialized_size <= self.compression.threshold_bytes:
                return data
            if not _is_uniform_records(data):
                return data

            keys = list(data[0].keys())
            values = [[item[k] for k in keys] for item in data]
            return CompressedPayload(
                keys=keys,
                values=values,
                original_size=serialized_size,
            )
        except (TypeError, ValueError) as e:
            logger.warning(f"Data compression failed, storing uncompressed: {e}")
            return data

"""Sampled per-field index over a collection snapshot.

Every Nth object of the snapshot, taken in ascending ObjectID order (0-based
position modulo the granularity), is sampled. For sampled objects that carry
the requested field, the value is recorded in the returned sample map and,
when it is a string, inserted into the field's membership filter.

The index is a scan-avoidance hint built from one snapshot. It never answers
"absent" for a value that was in the sample, and it says nothing about the
objects that were not sampled.
"""

from collections.abc import Callable, Mapping
import logging
from typing import Any

from gistdb_server.search.bloom_filter import BloomFilter, MembershipFilter


logger = logging.getLogger(__name__)

DEFAULT_FILTER_BITS = 100000
DEFAULT_FILTER_HASHES = 1


def default_filter_factory() -> MembershipFilter:
    return BloomFilter(bit_size=DEFAULT_FILTER_BITS, hash_count=DEFAULT_FILTER_HASHES)


class SparseIndex:
    """Per-field sampled index with probabilistic membership filters."""

    def __init__(
        self,
        granularity: int,
        filter_factory: Callable[[], MembershipFilter] | None = None,
    ):
        if granularity < 1:
            raise ValueError("granularity must be at least 1")
        self.granularity = granularity
        self._filter_factory = filter_factory or default_filter_factory
        self._field_filters: dict[str, MembershipFilter] = {}

    def build_index(self, snapshot: Mapping[str, Any], field: str) -> dict[str, Any]:
        """Sample ``snapshot`` and return ``{object_id: field_value}``.

        The field's filter is created on first use and reused by later
        builds for the same field, so it only ever grows.
        """
        sample: dict[str, Any] = {}
        for counter, object_id in enumerate(sorted(snapshot)):
            value = snapshot[object_id]
            if counter % self.granularity != 0:
                continue
            if isinstance(value, Mapping) and field in value:
                sample[object_id] = value[field]

        field_filter = self._field_filters.get(field)
        if field_filter is None:
            field_filter = self._filter_factory()
            self._field_filters[field] = field_filter

        inserted = 0
        for value in sample.values():
            if isinstance(value, str):
                field_filter.add(value)
                inserted += 1

        logger.debug(
            "Sparse index for field %r sampled %d of %d objects (%d string values)",
            field,
            len(sample),
            len(snapshot),
            inserted,
        )
        return sample

    def may_contain(self, field: str, value: str) -> bool:
        """False only when ``value`` was certainly never sampled for ``field``."""
        field_filter = self._field_filters.get(field)
        if field_filter is None:
            return False
        return field_filter.contains(value)

    def indexed_fields(self) -> list[str]:
        return list(self._field_filters)

    def get_stats(self) -> dict[str, Any]:
        stats: dict[str, Any] = {"granularity": self.granularity, "fields": {}}
        for field, field_filter in self._field_filters.items():
            get_filter_stats = getattr(field_filter, "get_stats", None)
            stats["fields"][field] = get_filter_stats() if get_filter_stats else {}
        return stats

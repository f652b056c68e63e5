"""Search use case: cache lookup, snapshot fetch, sparse-index hint, scan."""

from dataclasses import dataclass
import logging
import time
from typing import Literal

from gistdb_server.adapters.snapshot_repository import AbstractSnapshotRepository
from gistdb_server.config import Settings
from gistdb_server.domain.errors import BadRequest
from gistdb_server.observability.metrics import SEARCH_CACHE_EVENTS, SEARCH_LATENCY, SPARSE_INDEX_HINTS
from gistdb_server.search.bloom_filter import BloomFilter
from gistdb_server.search.engine import search_snapshot
from gistdb_server.search.sparse_index import SparseIndex
from gistdb_server.services.cache_service import AbstractSearchResultCache, NullSearchResultCache, cached_search


logger = logging.getLogger(__name__)

IndexHint = Literal["not_consulted", "maybe", "absent_in_sample"]


@dataclass
class SearchOutcome:
    object_ids: list[str]
    cache_hit: bool = False
    index_hint: IndexHint = "not_consulted"


class SearchService:
    """Answer substring queries over one collection.

    The sparse index is only consulted for field searches. Because it samples
    every Nth object and stores exact values while queries are substrings, a
    negative answer only short-circuits the scan when
    ``sparse_index_skip_on_absent`` is enabled; otherwise it is reported and
    the full scan still runs.
    """

    def __init__(
        self,
        snapshots: AbstractSnapshotRepository,
        cache: AbstractSearchResultCache | None = None,
        settings: Settings | None = None,
    ):
        self.snapshots = snapshots
        self.cache = cache if cache is not None else NullSearchResultCache()
        self.settings = settings or Settings()

    def _new_index(self) -> SparseIndex:
        bits = self.settings.bloom_filter_bits
        hashes = self.settings.bloom_filter_hash_count
        return SparseIndex(
            granularity=self.settings.index_granularity,
            filter_factory=lambda: BloomFilter(bit_size=bits, hash_count=hashes),
        )

    async def search(
        self,
        token: str,
        container_id: str,
        collection: str,
        query: str,
        field: str | None = None,
    ) -> SearchOutcome:
        if not container_id:
            raise BadRequest("Missing database id")
        if not collection:
            raise BadRequest("Missing collection name")

        outcome = SearchOutcome(object_ids=[])

        async def compute() -> list[str]:
            snapshot = await self.snapshots.load_snapshot(token, container_id, collection)

            if field is not None and self.settings.sparse_index_enabled:
                index = self._new_index()
                index.build_index(snapshot.objects, field)
                outcome.index_hint = "maybe" if index.may_contain(field, query) else "absent_in_sample"
                SPARSE_INDEX_HINTS.labels(hint=outcome.index_hint).inc()
                logger.debug("Sparse index for %s: %s", collection, index.get_stats())
                if outcome.index_hint == "absent_in_sample" and self.settings.sparse_index_skip_on_absent:
                    logger.debug("Sparse index skipped scan for %s=%r in %s", field, query, collection)
                    return []

            return search_snapshot(snapshot.objects, query, field)

        key = self.cache.key_for(container_id, collection, query, field)
        start = time.perf_counter()
        object_ids, cache_hit = await cached_search(self.cache, key, compute)
        label = "hit" if cache_hit else "miss"
        SEARCH_LATENCY.labels(cache=label).observe(time.perf_counter() - start)
        SEARCH_CACHE_EVENTS.labels(result=label).inc()

        outcome.object_ids = object_ids
        outcome.cache_hit = cache_hit
        logger.info(
            "Search in %s/%s returned %d id(s)",
            container_id,
            collection,
            len(object_ids),
            extra={"cache": label, "index_hint": outcome.index_hint},
        )
        return outcome

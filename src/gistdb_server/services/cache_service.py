"""Search result cache keyed by canonical search URLs.

Keys have the shape ``{base}/search/{container}/{collection}?q=...&field=...``
so every entry belonging to one collection shares a prefix, which is what
mutation-driven invalidation relies on.

There is no mutual exclusion between concurrent identical misses: both
compute, both write, the last write wins. That is harmless because a search
is deterministic for a given snapshot.
"""

from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Awaitable, Callable
import logging
import time
from typing import Any
from urllib.parse import quote, urlencode


logger = logging.getLogger(__name__)

DEFAULT_CACHE_BASE_URL = "https://gistdb.com"


def _segment(value: str) -> str:
    return quote(value, safe="")


def collection_key_prefix(container_id: str, collection: str, base_url: str = DEFAULT_CACHE_BASE_URL) -> str:
    return f"{base_url.rstrip('/')}/search/{_segment(container_id)}/{_segment(collection)}?"


def container_key_prefix(container_id: str, base_url: str = DEFAULT_CACHE_BASE_URL) -> str:
    return f"{base_url.rstrip('/')}/search/{_segment(container_id)}/"


def build_cache_key(
    container_id: str,
    collection: str,
    query: str,
    field: str | None = None,
    base_url: str = DEFAULT_CACHE_BASE_URL,
) -> str:
    """Build the canonical cache key for one search request."""
    params = {"q": query}
    if field is not None:
        params["field"] = field
    return collection_key_prefix(container_id, collection, base_url) + urlencode(params, quote_via=quote)


class AbstractSearchResultCache(ABC):
    """Capability injected into the search and document-store services."""

    base_url: str = DEFAULT_CACHE_BASE_URL

    @abstractmethod
    async def get(self, key: str) -> list[str] | None:
        """Return the cached id list, or None on a miss."""
        raise NotImplementedError

    @abstractmethod
    async def put(self, key: str, object_ids: list[str]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def invalidate_prefix(self, prefix: str) -> int:
        """Drop every entry whose key starts with ``prefix``; return the count."""
        raise NotImplementedError

    @abstractmethod
    async def clear(self) -> None:
        raise NotImplementedError

    async def invalidate_collection(self, container_id: str, collection: str) -> int:
        return await self.invalidate_prefix(collection_key_prefix(container_id, collection, self.base_url))

    async def invalidate_container(self, container_id: str) -> int:
        return await self.invalidate_prefix(container_key_prefix(container_id, self.base_url))

    def key_for(self, container_id: str, collection: str, query: str, field: str | None = None) -> str:
        return build_cache_key(container_id, collection, query, field, base_url=self.base_url)


class InMemorySearchResultCache(AbstractSearchResultCache):
    """Process-local LRU cache with optional expiry."""

    def __init__(
        self,
        max_entries: int = 1024,
        ttl_seconds: float | None = None,
        base_url: str = DEFAULT_CACHE_BASE_URL,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self.base_url = base_url
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float | None, list[str]]] = OrderedDict()
        self.stats = {"hits": 0, "misses": 0, "evictions": 0, "invalidations": 0}

    async def get(self, key: str) -> list[str] | None:
        entry = self._entries.get(key)
        if entry is None:
            self.stats["misses"] += 1
            return None

        expires_at, object_ids = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            self.stats["misses"] += 1
            return None

        self._entries.move_to_end(key)
        self.stats["hits"] += 1
        return list(object_ids)

    async def put(self, key: str, object_ids: list[str]) -> None:
        expires_at = self._clock() + self.ttl_seconds if self.ttl_seconds else None
        self._entries[key] = (expires_at, list(object_ids))
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self.stats["evictions"] += 1
            logger.debug("Evicted search cache entry %s", evicted)

    async def invalidate_prefix(self, prefix: str) -> int:
        stale = [key for key in self._entries if key.startswith(prefix)]
        for key in stale:
            del self._entries[key]
        self.stats["invalidations"] += len(stale)
        return len(stale)

    async def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> dict[str, Any]:
        return {**self.stats, "entries": len(self._entries), "max_entries": self.max_entries}


class NullSearchResultCache(AbstractSearchResultCache):
    """Cache that never stores anything (search caching disabled)."""

    async def get(self, key: str) -> list[str] | None:
        return None

    async def put(self, key: str, object_ids: list[str]) -> None:
        return None

    async def invalidate_prefix(self, prefix: str) -> int:
        return 0

    async def clear(self) -> None:
        return None


async def cached_search(
    cache: AbstractSearchResultCache,
    key: str,
    compute: Callable[[], Awaitable[list[str]]],
) -> tuple[list[str], bool]:
    """Return ``(object_ids, cache_hit)``, computing and storing on a miss."""
    cached = await cache.get(key)
    if cached is not None:
        logger.debug("Search cache hit for %s", key)
        return cached, True

    result = await compute()
    await cache.put(key, result)
    return result, False

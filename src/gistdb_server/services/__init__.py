"""Services package."""

from gistdb_server.services.cache_service import (
    AbstractSearchResultCache,
    InMemorySearchResultCache,
    NullSearchResultCache,
    build_cache_key,
    cached_search,
)


__all__ = [
    "AbstractSearchResultCache",
    "InMemorySearchResultCache",
    "NullSearchResultCache",
    "build_cache_key",
    "cached_search",
]

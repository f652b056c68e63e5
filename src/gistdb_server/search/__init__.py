"""Search primitives: substring engine, sampled sparse index, membership filters."""

from gistdb_server.search.bloom_filter import BloomFilter, ExactMembershipFilter, MembershipFilter
from gistdb_server.search.engine import json_contains, matches_query, search_snapshot
from gistdb_server.search.sparse_index import SparseIndex


__all__ = [
    "BloomFilter",
    "ExactMembershipFilter",
    "MembershipFilter",
    "SparseIndex",
    "json_contains",
    "matches_query",
    "search_snapshot",
]

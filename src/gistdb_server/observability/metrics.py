"""Prometheus metrics for request, blob store and search observability."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


REQUEST_LATENCY = Histogram(
    "gistdb_request_latency_seconds",
    "API request latency in seconds",
    ["route"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

REQUEST_COUNT = Counter(
    "gistdb_requests_total",
    "Total API requests",
    ["route", "status"],
)

BLOB_STORE_CALLS = Counter(
    "gistdb_blob_store_calls_total",
    "Blob store calls by HTTP method and upstream status",
    ["method", "status"],
)

SEARCH_LATENCY = Histogram(
    "gistdb_search_latency_seconds",
    "Search latency including snapshot fetch on cache miss",
    ["cache"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

SEARCH_CACHE_EVENTS = Counter(
    "gistdb_search_cache_events_total",
    "Search result cache lookups",
    ["result"],
)

SPARSE_INDEX_HINTS = Counter(
    "gistdb_sparse_index_hints_total",
    "Sparse index answers for field searches",
    ["hint"],
)


@contextmanager
def track_latency(histogram: Histogram, **labels: str) -> Generator[None, None, None]:
    """Context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get content type for metrics endpoint."""
    return CONTENT_TYPE_LATEST

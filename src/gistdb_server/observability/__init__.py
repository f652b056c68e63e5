"""Observability module: structured logging, Prometheus metrics and OpenTelemetry tracing."""

from gistdb_server.observability.context import (
    bind_request_fields,
    get_trace_context,
    set_trace_context,
    trace_context,
)
from gistdb_server.observability.logging import JsonFormatter, configure_logging
from gistdb_server.observability.metrics import (
    BLOB_STORE_CALLS,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    SEARCH_CACHE_EVENTS,
    SEARCH_LATENCY,
    SPARSE_INDEX_HINTS,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)
from gistdb_server.observability.tracing import (
    TraceContextMiddleware,
    configure_trace_exporter,
    create_span,
    get_tracer,
    init_tracing,
)


__all__ = [
    "BLOB_STORE_CALLS",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "SEARCH_CACHE_EVENTS",
    "SEARCH_LATENCY",
    "SPARSE_INDEX_HINTS",
    "JsonFormatter",
    "TraceContextMiddleware",
    "bind_request_fields",
    "configure_logging",
    "configure_trace_exporter",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
]

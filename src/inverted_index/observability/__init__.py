"""Logging, tracing and metrics for index builds and queries."""

from inverted_index.observability.context import bind_fields, current_fields, reset_fields
from inverted_index.observability.logging import JsonFormatter, configure_logging
from inverted_index.observability.metrics import (
    INDEX_BUILD_LATENCY,
    INDEX_TERM_COUNT,
    QUERY_COUNT,
    QUERY_LATENCY,
    MetricBridge,
    MetricKind,
    get_metrics,
    get_metrics_content_type,
    init_metrics,
    track_latency,
)
from inverted_index.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "INDEX_BUILD_LATENCY",
    "INDEX_TERM_COUNT",
    "QUERY_COUNT",
    "QUERY_LATENCY",
    "JsonFormatter",
    "MetricBridge",
    "MetricKind",
    "bind_fields",
    "configure_logging",
    "create_span",
    "current_fields",
    "get_metrics",
    "get_metrics_content_type",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "reset_fields",
    "track_latency",
]

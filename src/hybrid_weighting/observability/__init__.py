"""Observability module for OpenTelemetry-aligned tracing, metrics, and logging."""

from hybrid_weighting.observability.context import (
    bound_trace_context,
    get_trace_context,
    set_trace_context,
    trace_context,
    with_otel_span,
)
from hybrid_weighting.observability.logging import JsonFormatter, configure_logging
from hybrid_weighting.observability.metrics import (
    CORPUS_CACHE_LOOKUPS,
    CORPUS_FALLBACKS,
    DECISION_LATENCY,
    WEIGHT_DECISIONS,
    get_metrics,
    track_latency,
)
from hybrid_weighting.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "CORPUS_CACHE_LOOKUPS",
    "CORPUS_FALLBACKS",
    "DECISION_LATENCY",
    "WEIGHT_DECISIONS",
    "JsonFormatter",
    "bound_trace_context",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_trace_context",
    "get_tracer",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
    "with_otel_span",
]

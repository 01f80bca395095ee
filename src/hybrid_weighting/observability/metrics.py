"""Prometheus metrics for weight decisions and corpus-context lookups."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import Counter, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


WEIGHT_DECISIONS = Counter(
    "hybrid_weight_decisions_total",
    "Weight decisions emitted, by strategy",
    ["strategy"],
)

DECISION_LATENCY = Histogram(
    "hybrid_weight_decision_latency_seconds",
    "End-to-end weight determination latency",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

CORPUS_CACHE_LOOKUPS = Counter(
    "corpus_statistics_cache_lookups_total",
    "Corpus statistics cache lookups",
    ["result"],
)

CORPUS_FALLBACKS = Counter(
    "corpus_context_fallbacks_total",
    "Corpus context provider failures replaced by defaults",
    ["operation"],
)


@contextmanager
def track_latency(histogram: Histogram, **labels: str) -> Generator[None, None, None]:
    """Context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        target = histogram.labels(**labels) if labels else histogram
        target.observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()

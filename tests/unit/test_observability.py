"""Unit tests for logging, tracing and metrics helpers."""

import logging

import orjson
from opentelemetry.sdk.trace import TracerProvider
from prometheus_client import REGISTRY
import pytest

from hybrid_weighting.observability import (
    DECISION_LATENCY,
    JsonFormatter,
    bound_trace_context,
    configure_logging,
    create_span,
    get_metrics,
    get_trace_context,
    set_trace_context,
    tracing,
    track_latency,
    with_otel_span,
)
from hybrid_weighting.observability.context import trace_context


@pytest.fixture
def reset_trace_context():
    token = trace_context.set(None)
    yield
    trace_context.reset(token)


@pytest.mark.unit
class TestJsonFormatter:
    """JsonFormatter emits one JSON object per record."""

    def test_includes_extras_and_trace_ids(self, reset_trace_context):
        set_trace_context("a" * 32, "b" * 16, inference_id="elser-1")
        record = logging.makeLogRecord(
            {
                "name": "hybrid_weighting.services.contextual_scorer",
                "levelname": "WARNING",
                "msg": "Failed to get corpus statistics: %s",
                "args": ("timeout",),
                "index_name": "search-test",
            }
        )

        entry = orjson.loads(JsonFormatter().format(record))

        assert entry["message"] == "Failed to get corpus statistics: timeout"
        assert entry["level"] == "WARNING"
        assert entry["component"] == "contextual_scorer"
        assert entry["trace_id"] == "a" * 32
        assert entry["inference_id"] == "elser-1"
        assert entry["index_name"] == "search-test"
        assert "msg" not in entry

    def test_redacts_sensitive_keys(self):
        record = logging.makeLogRecord({"name": "hybrid_weighting", "msg": "provider call", "api_key": "s3cr3t"})

        entry = orjson.loads(JsonFormatter().format(record))

        assert entry["api_key"] == "[REDACTED]"

    def test_serializes_unusual_values(self):
        record = logging.makeLogRecord(
            {"name": "hybrid_weighting", "msg": "x", "changed": {"regional_bias"}, "error": ValueError("bad")}
        )

        entry = orjson.loads(JsonFormatter().format(record))

        assert entry["changed"] == ["regional_bias"]
        assert entry["error"] == "bad"

    def test_truncates_long_messages(self):
        record = logging.makeLogRecord({"name": "hybrid_weighting", "msg": "x" * 3000})

        entry = orjson.loads(JsonFormatter().format(record))

        assert len(entry["message"]) == JsonFormatter.MAX_MESSAGE_LEN + 3


@pytest.mark.unit
class TestConfigureLogging:
    def test_json_handler_and_overrides(self, restore_logging):
        configure_logging("debug", json_output=True, logger_levels={"hybrid_weighting.services": "warning"})

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert logging.getLogger("hybrid_weighting.services").level == logging.WARNING

    def test_plain_text_output(self, restore_logging):
        configure_logging("info", json_output=False)

        assert not isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)


@pytest.mark.unit
class TestTracingAndMetrics:
    def test_create_span_updates_trace_context(self, reset_trace_context):
        with create_span("weighting.test", attributes={"index_name": "search-test"}):
            ctx = get_trace_context()

        assert len(ctx["span_id"]) == 16
        assert len(ctx["trace_id"]) == 32

    def test_span_ids_come_from_opentelemetry(self, reset_trace_context, monkeypatch):
        monkeypatch.setitem(tracing._tracer_holder, "tracer", TracerProvider().get_tracer(__name__))
        set_trace_context("a" * 32, "b" * 16, inference_id="elser-1")

        with create_span("weighting.test") as span:
            ctx = get_trace_context()
            expected = with_otel_span(span)

        assert ctx["trace_id"] == expected["trace_id"] != "a" * 32
        assert ctx["span_id"] == expected["span_id"]
        assert ctx["inference_id"] == "elser-1"
        assert get_trace_context()["trace_id"] == "a" * 32

    def test_bound_trace_context_restores_previous(self, reset_trace_context):
        set_trace_context("a" * 32, "b" * 16)

        with bound_trace_context(inference_id="elser-2", batch=None) as ctx:
            assert get_trace_context()["inference_id"] == "elser-2"

        assert "batch" not in ctx
        assert "inference_id" not in get_trace_context()

    def test_create_span_propagates_errors(self):
        with pytest.raises(ValueError, match="boom"), create_span("weighting.failing"):
            raise ValueError("boom")

    def test_track_latency_observes_histogram(self):
        before = REGISTRY.get_sample_value("hybrid_weight_decision_latency_seconds_count") or 0.0

        with track_latency(DECISION_LATENCY):
            pass

        assert REGISTRY.get_sample_value("hybrid_weight_decision_latency_seconds_count") == before + 1

    def test_metrics_exposition(self):
        payload = get_metrics()

        assert b"hybrid_weight_decision_latency_seconds" in payload
        assert b"corpus_context_fallbacks_total" in payload

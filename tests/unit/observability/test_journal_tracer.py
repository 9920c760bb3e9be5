"""
Unit tests for the tracer implementations and attribute constants.

Tests for:
- Tracer Protocol conformance
- NullTracer / MockTracer behavior
- create_tracer() factory
- Attribute naming convention
"""

from __future__ import annotations

import pytest

from journalmigrate.observability import (
    OTEL_AVAILABLE,
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    RecordedSpan,
    Tracer,
    create_tracer,
)
from journalmigrate.observability import attributes


class TestTracerProtocol:
    """Tests for Tracer protocol conformance."""

    def test_null_tracer_implements_protocol(self):
        assert isinstance(NullTracer(), Tracer)

    def test_mock_tracer_implements_protocol(self):
        assert isinstance(MockTracer(), Tracer)

    @pytest.mark.skipif(not OTEL_AVAILABLE, reason="OTEL not installed")
    def test_otel_tracer_implements_protocol(self):
        tracer = OpenTelemetryTracer(__name__)
        assert isinstance(tracer, Tracer)
        assert tracer.enabled is True

    @pytest.mark.skipif(not OTEL_AVAILABLE, reason="OTEL not installed")
    def test_otel_tracer_drops_none_attributes(self):
        """A None attribute value does not reach OpenTelemetry."""
        tracer = OpenTelemetryTracer(__name__)
        with tracer.span("journalmigrate.test", {"plan": None, "count": 3}):
            pass


class TestNullTracer:
    """Tests for NullTracer."""

    def test_span_yields_none(self):
        """The no-op span yields None and does nothing."""
        tracer = NullTracer()
        with tracer.span("journalmigrate.test", {"a": 1}) as span:
            assert span is None
        assert tracer.enabled is False

    def test_exceptions_propagate(self):
        """Errors inside a span are not swallowed."""
        with pytest.raises(RuntimeError), NullTracer().span("journalmigrate.test"):
            raise RuntimeError("boom")


class TestMockTracer:
    """Tests for MockTracer."""

    def test_records_spans_in_order(self):
        tracer = MockTracer()
        with tracer.span("first", {"k": "v"}):
            with tracer.span("second"):
                pass

        assert tracer.spans == [("first", {"k": "v"}), ("second", None)]
        assert tracer.span_names == ["first", "second"]
        assert tracer.enabled is True

    def test_spans_are_named_tuples(self):
        tracer = MockTracer()
        with tracer.span("journalmigrate.store.get", {"journalmigrate.store.key": "k"}):
            pass

        span = tracer.spans[0]
        assert isinstance(span, RecordedSpan)
        assert span.name == "journalmigrate.store.get"
        assert span.attributes == {"journalmigrate.store.key": "k"}

    def test_attributes_for(self):
        tracer = MockTracer()
        with tracer.span("step", {"id": "a"}):
            pass
        with tracer.span("other"):
            pass
        with tracer.span("step"):
            pass

        assert tracer.attributes_for("step") == [{"id": "a"}, {}]
        assert tracer.attributes_for("missing") == []

    def test_clear(self):
        tracer = MockTracer()
        with tracer.span("first"):
            pass
        tracer.clear()
        assert tracer.spans == []


class TestCreateTracer:
    """Tests for the create_tracer factory."""

    def test_disabled_returns_null_tracer(self):
        """Tracing disabled always gives a NullTracer."""
        assert isinstance(create_tracer(__name__, enable_tracing=False), NullTracer)

    def test_enabled_follows_otel_availability(self):
        """Tracing enabled gives a real tracer only when OTEL is installed."""
        tracer = create_tracer(__name__, enable_tracing=True)
        if OTEL_AVAILABLE:
            assert isinstance(tracer, OpenTelemetryTracer)
        else:
            assert isinstance(tracer, NullTracer)


class TestAttributes:
    """Tests for span attribute constants."""

    def test_all_attributes_are_namespaced(self):
        """Every exported attribute starts with the library namespace."""
        for name in attributes.__all__:
            value = getattr(attributes, name)
            assert value.startswith("journalmigrate."), name

    def test_attribute_values_are_unique(self):
        values = [getattr(attributes, name) for name in attributes.__all__]
        assert len(values) == len(set(values))

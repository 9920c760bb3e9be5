"""
Observability utilities for journalmigrate.

Tracers and the span attribute names shared by all components.
OpenTelemetry is optional; see tracer.create_tracer.
"""

from journalmigrate.observability.attributes import (
    ATTR_BATCH_INDEX,
    ATTR_BATCH_SIZE,
    ATTR_BYTES,
    ATTR_FLAG_KEY,
    ATTR_PLAN_ID,
    ATTR_RECORD_COUNT,
    ATTR_ROLLOUT_PERCENTAGE,
    ATTR_STEP_ID,
    ATTR_STORE_BACKEND,
    ATTR_STORE_KEY,
    ATTR_TARGET_VERSION,
)
from journalmigrate.observability.tracer import (
    OTEL_AVAILABLE,
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    RecordedSpan,
    Tracer,
    create_tracer,
)

__all__ = [
    # Tracing
    "OTEL_AVAILABLE",
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "RecordedSpan",
    "create_tracer",
    # Attributes
    "ATTR_STORE_KEY",
    "ATTR_STORE_BACKEND",
    "ATTR_BYTES",
    "ATTR_PLAN_ID",
    "ATTR_STEP_ID",
    "ATTR_TARGET_VERSION",
    "ATTR_RECORD_COUNT",
    "ATTR_BATCH_SIZE",
    "ATTR_BATCH_INDEX",
    "ATTR_FLAG_KEY",
    "ATTR_ROLLOUT_PERCENTAGE",
]

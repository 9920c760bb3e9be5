"""
Tracing for stores, the flag registry and the migration components.

Every component takes an optional ``tracer`` argument and otherwise builds
one with create_tracer(__name__, enable_tracing). OpenTelemetry is an
optional extra (``journalmigrate[telemetry]``); without it, or with
tracing disabled, components get a NullTracer.

Span names follow ``journalmigrate.<component>.<operation>``, for example
``journalmigrate.store.set`` or ``journalmigrate.orchestrator.step``.
Attribute keys live in journalmigrate.observability.attributes.
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, NamedTuple, Protocol, runtime_checkable

try:
    from opentelemetry import trace

    OTEL_AVAILABLE = True
except ImportError:
    OTEL_AVAILABLE = False
    trace = None  # type: ignore[assignment]

if TYPE_CHECKING:
    from opentelemetry.trace import Span


@runtime_checkable
class Tracer(Protocol):
    """Anything that can open a named span with attributes."""

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span | None]: ...

    @property
    def enabled(self) -> bool:
        """True if spans are recorded somewhere."""
        ...


class NullTracer:
    """Tracer used when tracing is off. Spans yield None."""

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[None]:
        return contextlib.nullcontext()

    @property
    def enabled(self) -> bool:
        return False


class OpenTelemetryTracer:
    """
    Tracer backed by the globally configured OpenTelemetry provider.

    Attributes whose value is None are dropped, since OpenTelemetry rejects
    them (a plan id or record count is not always known when a span opens).

    Raises:
        ImportError: If OpenTelemetry is not installed.
    """

    def __init__(self, tracer_name: str) -> None:
        if trace is None:
            raise ImportError("OpenTelemetry is not installed; install journalmigrate[telemetry]")
        self._tracer = trace.get_tracer(tracer_name)

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span | None]:
        cleaned = {key: value for key, value in (attributes or {}).items() if value is not None}
        return self._tracer.start_as_current_span(name, attributes=cleaned)

    @property
    def enabled(self) -> bool:
        return True


class RecordedSpan(NamedTuple):
    """A span captured by MockTracer."""

    name: str
    attributes: dict[str, Any] | None


class MockTracer:
    """
    Tracer for tests. Records every span opened, in order.

    Example:
        >>> tracer = MockTracer()
        >>> store = InMemoryRecordStore(tracer=tracer)
        >>> await store.set("feature.flags", b"[]")
        >>> tracer.span_names
        ['journalmigrate.store.set']
    """

    def __init__(self) -> None:
        self.spans: list[RecordedSpan] = []

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Iterator[None]:
        self.spans.append(RecordedSpan(name, attributes))
        yield None

    @property
    def enabled(self) -> bool:
        return True

    @property
    def span_names(self) -> list[str]:
        return [span.name for span in self.spans]

    def attributes_for(self, name: str) -> list[dict[str, Any]]:
        """Attributes of every recorded span with the given name."""
        return [span.attributes or {} for span in self.spans if span.name == name]

    def clear(self) -> None:
        self.spans.clear()


def create_tracer(name: str, enable_tracing: bool = True) -> Tracer:
    """
    Build the tracer for a component.

    Args:
        name: Tracer name, usually the component module's __name__.
        enable_tracing: False forces a NullTracer.

    Returns:
        An OpenTelemetryTracer when tracing is enabled and OpenTelemetry
        is installed, otherwise a NullTracer.
    """
    if enable_tracing and OTEL_AVAILABLE:
        return OpenTelemetryTracer(name)
    return NullTracer()


__all__ = [
    "OTEL_AVAILABLE",
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "RecordedSpan",
    "create_tracer",
]

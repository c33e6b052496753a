"""
Span helpers for the chat pipeline.

Chat steps talk to a small span interface (attributes, ok, error) so the
orchestrator never imports OpenTelemetry directly. get_tracer() hands out
the OTel-backed tracer once init_tracing() has installed an SDK provider,
and a NoOpTracer otherwise.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Protocol

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import Status, StatusCode


class SpanProtocol(Protocol):
    def set_attribute(self, key: str, value: Any) -> None:
        ...

    def set_attributes(self, attributes: Mapping[str, Any]) -> None:
        ...

    def mark_ok(self) -> None:
        ...

    def mark_error(self, description: str, exception: BaseException | None = None) -> None:
        ...


class TracerProtocol(Protocol):
    def start_span(
        self, name: str, attributes: Mapping[str, Any] | None = None
    ) -> Iterator[SpanProtocol]:
        """Open a span around one chat step; use as a context manager."""
        ...


# ---------------------------------------------------------------------------
# DISABLED TRACING
# ---------------------------------------------------------------------------


class NoOpSpan:
    """Accepts every call and records nothing."""

    def set_attribute(self, key: str, value: Any) -> None:
        pass

    def set_attributes(self, attributes: Mapping[str, Any]) -> None:
        pass

    def mark_ok(self) -> None:
        pass

    def mark_error(self, description: str, exception: BaseException | None = None) -> None:
        pass


class NoOpTracer:
    @contextmanager
    def start_span(
        self, name: str, attributes: Mapping[str, Any] | None = None
    ) -> Iterator[NoOpSpan]:
        yield NoOpSpan()


# ---------------------------------------------------------------------------
# OPENTELEMETRY-BACKED TRACING
# ---------------------------------------------------------------------------


class OTelSpan:
    """Adapts an opentelemetry Span to SpanProtocol."""

    def __init__(self, span: trace.Span):
        self._span = span

    def set_attribute(self, key: str, value: Any) -> None:
        self._span.set_attribute(key, value)

    def set_attributes(self, attributes: Mapping[str, Any]) -> None:
        self._span.set_attributes(dict(attributes))

    def mark_ok(self) -> None:
        self._span.set_status(Status(StatusCode.OK))

    def mark_error(self, description: str, exception: BaseException | None = None) -> None:
        if exception is not None:
            self._span.record_exception(exception)
        self._span.set_status(Status(StatusCode.ERROR, description))


class OTelTracer:
    def __init__(self, tracer: trace.Tracer):
        self._otel = tracer

    @contextmanager
    def start_span(
        self, name: str, attributes: Mapping[str, Any] | None = None
    ) -> Iterator[OTelSpan]:
        # Errors reach the span only through mark_error.
        with self._otel.start_as_current_span(
            name,
            attributes=dict(attributes or {}),
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            yield OTelSpan(span)


# ---------------------------------------------------------------------------
# FACTORY
# ---------------------------------------------------------------------------


_tracer: TracerProtocol | None = None


def get_tracer(instrumentation_name: str = "kb_chat") -> TracerProtocol:
    """
    Return the process-wide tracer.

    While PHOENIX_ENABLED is off this is a cached NoOpTracer. When tracing is
    enabled but init_tracing() has not installed an SDK provider yet, a
    throwaway NoOpTracer is returned so the next call can pick up the real one.
    """
    global _tracer
    if _tracer is not None:
        return _tracer

    from kb_chat.observability.config import get_config

    if not get_config().enabled:
        _tracer = NoOpTracer()
        return _tracer

    if not isinstance(trace.get_tracer_provider(), TracerProvider):
        return NoOpTracer()

    _tracer = OTelTracer(trace.get_tracer(instrumentation_name))
    return _tracer


def reset_tracer() -> None:
    global _tracer
    _tracer = None

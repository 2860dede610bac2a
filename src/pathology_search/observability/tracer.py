"""
Span factory for search telemetry.

get_tracer() hands out an OpenTelemetry-backed tracer once init_tracing()
has installed an SDK provider, and a do-nothing tracer otherwise. Engine
code only ever sees TracerProtocol, so it never checks whether tracing is
switched on. Exceptions raised inside a span are recorded by OpenTelemetry
itself when the span closes.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Protocol

_OK = "ok"


class SpanProtocol(Protocol):
    """The two span operations the engine uses."""

    def set_attribute(self, key: str, value: Any) -> None:
        ...

    def set_status(self, status: str, description: str | None = None) -> None:
        """status is "ok" or "error"."""
        ...


class TracerProtocol(Protocol):
    @contextmanager
    def start_span(self, name: str, attributes: dict[str, Any] | None = None) -> Iterator[SpanProtocol]:
        ...


# ---------------------------------------------------------------------------
# DISABLED
# ---------------------------------------------------------------------------


class NoOpSpan:
    """Accepts and discards everything."""

    def set_attribute(self, key: str, value: Any) -> None:
        return None

    def set_status(self, status: str, description: str | None = None) -> None:
        return None


class NoOpTracer:
    """Used when tracing is off or no SDK provider is installed."""

    @contextmanager
    def start_span(self, name: str, attributes: dict[str, Any] | None = None) -> Iterator[NoOpSpan]:
        yield NoOpSpan()


# ---------------------------------------------------------------------------
# OPENTELEMETRY
# ---------------------------------------------------------------------------


class OTelSpan:
    """Adapts an OpenTelemetry span to SpanProtocol."""

    def __init__(self, span: Any):
        self._span = span

    def set_attribute(self, key: str, value: Any) -> None:
        self._span.set_attribute(key, value)

    def set_status(self, status: str, description: str | None = None) -> None:
        from opentelemetry.trace import Status, StatusCode

        if status == _OK:
            self._span.set_status(Status(StatusCode.OK))
        else:
            self._span.set_status(Status(StatusCode.ERROR, description))


class OTelTracer:
    """Opens each span as the current span so nested spans parent correctly."""

    def __init__(self, tracer: Any):
        self._otel_tracer = tracer

    @contextmanager
    def start_span(self, name: str, attributes: dict[str, Any] | None = None) -> Iterator[OTelSpan]:
        with self._otel_tracer.start_as_current_span(name, attributes=attributes) as otel_span:
            yield OTelSpan(otel_span)


# ---------------------------------------------------------------------------
# FACTORY
# ---------------------------------------------------------------------------


_tracer: TracerProtocol | None = None


def get_tracer(service_name: str = "pathology-search") -> TracerProtocol:
    """
    Process-wide tracer, created on first call.

    Args:
        service_name: Instrumentation scope name (only the first call counts)
    """
    global _tracer
    if _tracer is None:
        _tracer = _build_tracer(service_name)
    return _tracer


def _build_tracer(service_name: str) -> TracerProtocol:
    from opentelemetry import trace
    from opentelemetry.sdk.trace import TracerProvider

    from pathology_search.observability.config import get_config

    if not get_config().enabled:
        return NoOpTracer()
    # The API's default proxy provider means init_tracing() has not run
    if not isinstance(trace.get_tracer_provider(), TracerProvider):
        return NoOpTracer()
    return OTelTracer(trace.get_tracer(service_name))


def reset_tracer() -> None:
    """Forget the cached tracer so the next get_tracer() re-reads config."""
    global _tracer
    _tracer = None

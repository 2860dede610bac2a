"""
OpenTelemetry tracing for the search engine and its hosts.

Call init_tracing() once at process start (the CLI does), and
shutdown_tracing() before exit so batched spans are flushed. Library code
asks get_tracer() for a tracer and gets a no-op one until then.

Span names:
    search.initialize  one per successful or failed load
    search.query       one per non-blank query
"""

from __future__ import annotations

import logging

from pathology_search.observability.attributes import (
    SEARCH_CORPUS_DIM,
    SEARCH_CORPUS_SIZE,
    SEARCH_CORRELATION_ID,
    SEARCH_EMBEDDING_MS,
    SEARCH_HOST,
    SEARCH_LIMIT,
    SEARCH_PCA_COMPONENTS,
    SEARCH_QUERY_LENGTH,
    SEARCH_QUERY_TOKENS,
    SEARCH_RESULT_COUNT,
    SEARCH_SCAN_MS,
    corpus_attributes,
    search_request_attributes,
)
from pathology_search.observability.config import TracingConfig, get_config, reset_config
from pathology_search.observability.tracer import (
    NoOpSpan,
    NoOpTracer,
    SpanProtocol,
    TracerProtocol,
    get_tracer,
    reset_tracer,
)

logger = logging.getLogger(__name__)

_provider = None


def init_tracing(config: TracingConfig | None = None) -> bool:
    """
    Install the SDK tracer provider and its exporter.

    Spans go to the OTLP/HTTP endpoint when one is configured and to stdout
    otherwise. Calling again after a successful init does nothing.

    Returns:
        True if tracing is active, False if disabled by config
    """
    global _provider
    if _provider is not None:
        return True

    config = config or get_config()
    if not config.enabled:
        logger.debug("Tracing disabled")
        return False

    from opentelemetry import trace
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

    if config.otlp_endpoint:
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

        exporter = OTLPSpanExporter(endpoint=config.otlp_endpoint)
        logger.info(f"Exporting traces to {config.otlp_endpoint}")
    else:
        exporter = ConsoleSpanExporter()
        logger.info("Exporting traces to console")

    provider = TracerProvider(resource=Resource.create({"service.name": config.service_name}))
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    # Tracers handed out before this point are no-ops
    reset_tracer()
    _provider = provider
    return True


def shutdown_tracing() -> None:
    """Flush pending spans. Safe to call when tracing was never started."""
    global _provider
    if _provider is None:
        return
    _provider.shutdown()
    _provider = None
    reset_tracer()
    reset_config()


__all__ = [
    "init_tracing",
    "shutdown_tracing",
    "TracingConfig",
    "get_config",
    "reset_config",
    "TracerProtocol",
    "SpanProtocol",
    "NoOpTracer",
    "NoOpSpan",
    "get_tracer",
    "reset_tracer",
    "SEARCH_HOST",
    "SEARCH_QUERY_LENGTH",
    "SEARCH_QUERY_TOKENS",
    "SEARCH_LIMIT",
    "SEARCH_CORRELATION_ID",
    "SEARCH_RESULT_COUNT",
    "SEARCH_EMBEDDING_MS",
    "SEARCH_SCAN_MS",
    "SEARCH_CORPUS_SIZE",
    "SEARCH_CORPUS_DIM",
    "SEARCH_PCA_COMPONENTS",
    "search_request_attributes",
    "corpus_attributes",
]

"""
Tracing for the chat server.

Spans for each chat step (moderation, retrieval, completion) plus the
OpenInference instrumentation of the OpenAI SDK are exported over OTLP/HTTP
to an Arize Phoenix collector. Everything is off unless PHOENIX_ENABLED is
set, in which case create_app() calls init_tracing() during startup and
shutdown_tracing() when the server stops.

    tracer = get_tracer()
    with tracer.start_span("chat.retrieval") as span:
        span.set_attributes(retrieval_attributes(matches, 12, top_k=3, min_score=0.65))
"""

from __future__ import annotations

import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from kb_chat.observability.config import (
    ObservabilityConfig,
    get_config,
    reset_config,
)
from kb_chat.observability.tracer import (
    TracerProtocol,
    SpanProtocol,
    NoOpTracer,
    NoOpSpan,
    get_tracer,
    reset_tracer,
)
from kb_chat.observability.attributes import (
    GEN_AI_REQUEST_MODEL,
    CHAT_STEP_DEGRADED,
    CHAT_MODERATION_FLAGGED,
    RAG_RETRIEVED_DOC_COUNT,
    RAG_TOP_SCORE,
    chat_request_attributes,
    retrieval_attributes,
)

logger = logging.getLogger(__name__)

_provider: TracerProvider | None = None


def init_tracing(config: ObservabilityConfig | None = None) -> bool:
    """
    Install an SDK tracer provider that ships spans to Phoenix.

    Safe to call more than once; only the first successful call installs a
    provider. A collector that cannot be configured leaves tracing off and
    the server running.

    Returns:
        True when spans are being exported
    """
    global _provider
    if _provider is not None:
        return True

    config = config or get_config()
    if not config.enabled:
        logger.debug("PHOENIX_ENABLED is off, spans are not exported")
        return False

    try:
        provider = TracerProvider(
            resource=Resource.create({"openinference.project.name": config.project_name})
        )
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=config.collector_endpoint))
        )
        trace.set_tracer_provider(provider)

        from kb_chat.observability.instrumentation import register_instrumentors
        register_instrumentors()
    except Exception as e:
        logger.error("Tracing setup failed, continuing without it: %s", e)
        return False

    logger.info("Exporting spans for project %s to %s", config.project_name, config.collector_endpoint)
    reset_tracer()
    _provider = provider
    return True


def shutdown_tracing() -> None:
    """Flush pending spans and drop the cached tracer/config."""
    global _provider
    if _provider is None:
        return

    from kb_chat.observability.instrumentation import uninstrument
    uninstrument()
    _provider.shutdown()
    _provider = None
    reset_tracer()
    reset_config()


__all__ = [
    # Initialization
    "init_tracing",
    "shutdown_tracing",
    # Config
    "ObservabilityConfig",
    "get_config",
    "reset_config",
    # Tracer
    "TracerProtocol",
    "SpanProtocol",
    "NoOpTracer",
    "NoOpSpan",
    "get_tracer",
    "reset_tracer",
    # Attributes
    "GEN_AI_REQUEST_MODEL",
    "CHAT_STEP_DEGRADED",
    "CHAT_MODERATION_FLAGGED",
    "RAG_RETRIEVED_DOC_COUNT",
    "RAG_TOP_SCORE",
    "chat_request_attributes",
    "retrieval_attributes",
]

"""OpenTelemetry bootstrap and span name constants.

When ``TracingConfig.enabled`` is set, ``init_telemetry`` installs a
``TracerProvider`` with an OTLP/HTTP exporter and instruments FastAPI
(inbound) and httpx (outbound: catalog, spoke calculator and the model
API via ``langchain-openai``).  Otherwise the module-level ``tracer`` is
the no-op tracer and every span below costs nothing.

Spans are started with ``tracer.start_as_current_span`` only inside
plain coroutines; streaming generators that may be resumed from another
task use ``tracer.start_span`` and end the span explicitly.
"""

from __future__ import annotations

import logging

from opentelemetry import trace

from wheelchat.configs.system import TracingConfig

logger = logging.getLogger(__name__)

tracer = trace.get_tracer("wheelchat")

# ---------------------------------------------------------------------------
# Span names
# ---------------------------------------------------------------------------

SPAN_CHAT_STREAM = "chat.stream"
SPAN_TOOL_DISPATCH = "tool.dispatch"
SPAN_CATALOG_SEARCH = "catalog.search"
SPAN_CATALOG_VARIANT = "catalog.variant"
SPAN_SPOKE_CALC = "spoke.calculate"

# ---------------------------------------------------------------------------
# Span attribute keys
# ---------------------------------------------------------------------------

ATTR_TOOL_NAME = "tool.name"
ATTR_TOOL_STATUS = "tool.status"
ATTR_CATALOG_QUERY = "catalog.query"
ATTR_CATALOG_RESULT_COUNT = "catalog.result_count"
ATTR_CHAT_STEPS = "chat.steps"
ATTR_CHAT_OUTCOME = "chat.outcome"


def init_telemetry(
    app: object | None = None,
    settings: TracingConfig | None = None,
) -> bool:
    """Initialise the OTEL ``TracerProvider`` and auto-instrumentations.

    Returns ``True`` when tracing was switched on.
    """
    if settings is None or not settings.enabled:
        logger.info("OpenTelemetry tracing disabled.")
        return False

    if not settings.endpoint:
        logger.warning(
            "Tracing enabled but no endpoint configured; skipping OpenTelemetry setup."
        )
        return False

    from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
        OTLPSpanExporter,
    )
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
    from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

    resource = Resource.create({"service.name": settings.service_name})
    sampler = ParentBased(root=TraceIdRatioBased(settings.sample_rate))
    provider = TracerProvider(resource=resource, sampler=sampler)
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.endpoint))
    )
    trace.set_tracer_provider(provider)

    if app is not None:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        excluded = ",".join(settings.excluded_urls) if settings.excluded_urls else ""
        FastAPIInstrumentor.instrument_app(app, excluded_urls=excluded)

    from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

    HTTPXClientInstrumentor().instrument()

    logger.info(
        "OpenTelemetry tracing initialised (service=%s).", settings.service_name
    )
    return True

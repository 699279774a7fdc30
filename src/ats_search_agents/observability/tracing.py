"""OpenTelemetry spans for aggregation runs and per-platform searches.

Tracing is opt-in through ``Settings.otel_exporter``. While it is
``"none"`` the span helpers yield ``None`` and nothing from the
``opentelemetry`` distribution is imported.
"""

from __future__ import annotations

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from ats_search_core.config.settings import Settings

logger = structlog.get_logger()

_TRACER_NAME = "ats-job-search"

# Set by configure_tracing(); None while tracing is disabled
_tracer: Any = None


def _span_processor(settings: Settings) -> Any:
    """Build the span processor for the configured exporter."""
    if settings.otel_exporter == "otlp":
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        return BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otel_endpoint))

    from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor

    return SimpleSpanProcessor(ConsoleSpanExporter())


def configure_tracing(settings: Settings) -> None:
    """Install a tracer provider for the ``console`` or ``otlp`` exporter."""
    global _tracer

    if settings.otel_exporter == "none":
        _tracer = None
        return

    from opentelemetry import trace
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider

    provider = TracerProvider(
        resource=Resource.create({"service.name": settings.otel_service_name})
    )
    provider.add_span_processor(_span_processor(settings))
    trace.set_tracer_provider(provider)

    _tracer = trace.get_tracer(_TRACER_NAME)
    logger.info(
        "tracing_configured",
        exporter=settings.otel_exporter,
        service=settings.otel_service_name,
    )


def disable_tracing() -> None:
    """Turn tracing off again (used by tests)."""
    global _tracer
    _tracer = None


@asynccontextmanager
async def trace_pipeline_run(run_id: str, cache_key: str) -> AsyncGenerator[Any, None]:
    """Root span for a whole run. Yields the span, or None if tracing is disabled."""
    if _tracer is None:
        yield None
        return

    with _tracer.start_as_current_span("pipeline.run") as span:
        span.set_attribute("pipeline.run_id", run_id)
        span.set_attribute("pipeline.cache_key", cache_key)
        yield span


@asynccontextmanager
async def trace_platform(platform: str) -> AsyncGenerator[Any, None]:
    """Child span for one platform search, timed from entry to exit."""
    if _tracer is None:
        yield None
        return

    with _tracer.start_as_current_span(f"platform.{platform}") as span:
        span.set_attribute("platform.name", platform)
        start = time.monotonic()
        try:
            yield span
        finally:
            span.set_attribute(
                "platform.duration_seconds", round(time.monotonic() - start, 3)
            )

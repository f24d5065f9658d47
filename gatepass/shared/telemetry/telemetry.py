"""OpenTelemetry tracing setup.

start_tracing installs the global tracer provider, picks the exporter and
instruments FastAPI and logging. Spans opened by @traced are no-ops until
it runs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

if TYPE_CHECKING:
    from gatepass.core.config import Settings

logger = logging.getLogger(__name__)

_provider: TracerProvider | None = None


def build_exporter(kind: str, otlp_endpoint: str | None = None) -> SpanExporter | None:
    """Exporter for TELEMETRY_EXPORTER: "console", "otlp" or "none".

    Raises:
        ValueError: "otlp" without an endpoint.
    """
    kind = kind.strip().lower()
    if kind == "none":
        return None
    if kind == "otlp":
        if not otlp_endpoint:
            raise ValueError("TELEMETRY_OTLP_ENDPOINT is required for the otlp exporter")
        return OTLPSpanExporter(
            endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://")
        )
    if kind != "console":
        logger.warning("Unknown telemetry exporter %r, using console", kind)
    return ConsoleSpanExporter()


def start_tracing(app: FastAPI, settings: Settings) -> TracerProvider | None:
    """Install tracing once per process. Returns None when the exporter is misconfigured."""
    global _provider
    if _provider is not None:
        return _provider
    try:
        exporter = build_exporter(settings.telemetry_exporter, settings.telemetry_otlp_endpoint)
    except ValueError:
        logger.exception("Tracing not started")
        return None

    provider = TracerProvider(
        resource=Resource.create(
            {
                SERVICE_NAME: settings.app_name,
                SERVICE_VERSION: settings.app_version,
                "deployment.environment": settings.telemetry_environment,
            }
        ),
        sampler=ParentBased(TraceIdRatioBased(settings.telemetry_sample_rate)),
    )
    if exporter is not None:
        provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    # probes would drown out real traffic
    FastAPIInstrumentor.instrument_app(
        app, tracer_provider=provider, excluded_urls="/api/v1/health"
    )
    LoggingInstrumentor().instrument(tracer_provider=provider, set_logging_format=False)
    _provider = provider
    logger.info(
        "Tracing started (exporter=%s, sample_rate=%s)",
        settings.telemetry_exporter,
        settings.telemetry_sample_rate,
    )
    return provider


def stop_tracing() -> None:
    """Flush pending spans and shut the provider down."""
    global _provider
    if _provider is None:
        return
    provider, _provider = _provider, None
    provider.shutdown()

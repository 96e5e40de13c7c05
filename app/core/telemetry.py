"""
OpenTelemetry distributed tracing configuration for the Person Directory API.

This module provides instrumentation for:
- FastAPI (HTTP requests/responses)
- SQLAlchemy (database queries, via the async engine's sync engine)
- HTTPX (outbound HTTP calls)

Configuration via environment variables:
- OTEL_ENABLED: Enable/disable tracing (default: false)
- OTEL_SERVICE_NAME: Service name for traces (default: person-directory-api)
- OTEL_EXPORTER_OTLP_ENDPOINT: OTLP collector endpoint (default: http://localhost:4317)
- OTEL_EXPORTER_OTLP_HEADERS: Optional headers for OTLP exporter
- OTEL_TRACES_SAMPLER: always_on | always_off | traceidratio | parent_trace_always
- OTEL_TRACES_SAMPLER_ARG: Sampling rate (default: 1.0)
"""

import logging
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import DEPLOYMENT_ENVIRONMENT, SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import (
    ALWAYS_OFF,
    ALWAYS_ON,
    ParentBased,
    Sampler,
    TraceIdRatioBased,
)

from app.core.config import settings

logger = logging.getLogger(__name__)

# Global tracer provider reference for shutdown
_tracer_provider: TracerProvider | None = None


def _parse_headers(headers_string: str | None) -> dict[str, str]:
    """
    Parse OTLP headers from environment variable format.

    Args:
        headers_string: Headers in format "key1=value1,key2=value2"
    """
    if not headers_string:
        return {}

    headers = {}
    for pair in headers_string.split(","):
        pair = pair.strip()
        if "=" in pair:
            key, value = pair.split("=", 1)
            headers[key.strip()] = value.strip()
    return headers


def build_sampler(name: str, ratio: float) -> Sampler:
    """Map a sampler name from settings to an SDK sampler."""
    if name == "always_on":
        return ALWAYS_ON
    if name == "always_off":
        return ALWAYS_OFF
    if name == "traceidratio":
        return TraceIdRatioBased(ratio)
    return ParentBased(root=TraceIdRatioBased(ratio))


def init_telemetry() -> TracerProvider | None:
    """
    Initialize OpenTelemetry distributed tracing from settings.

    Sets up a tracer provider with service resource attributes, an OTLP gRPC
    span exporter and a batch span processor.

    Returns:
        TracerProvider instance if enabled, None otherwise
    """
    global _tracer_provider

    if not settings.otel_enabled:
        logger.info("OpenTelemetry tracing is disabled (OTEL_ENABLED=false)")
        return None

    resource = Resource.create(
        {
            SERVICE_NAME: settings.otel_service_name,
            DEPLOYMENT_ENVIRONMENT: settings.app_env.value,
            "app.region": settings.app_region,
            "service.version": "0.1.0",
        }
    )
    tracer_provider = TracerProvider(
        resource=resource,
        sampler=build_sampler(settings.otel_traces_sampler, settings.otel_traces_sampler_arg),
    )
    tracer_provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(
                endpoint=settings.otel_exporter_otlp_endpoint,
                headers=_parse_headers(settings.otel_exporter_otlp_headers),
            )
        )
    )
    trace.set_tracer_provider(tracer_provider)
    _tracer_provider = tracer_provider

    logger.info(
        "OpenTelemetry initialized",
        extra={
            "service": settings.otel_service_name,
            "endpoint": settings.otel_exporter_otlp_endpoint,
            "sampler": settings.otel_traces_sampler,
        },
    )
    return tracer_provider


def instrument_fastapi(app: Any) -> None:
    if not settings.otel_enabled:
        logger.debug("OpenTelemetry disabled - skipping FastAPI instrumentation")
        return
    FastAPIInstrumentor.instrument_app(app)
    logger.info("FastAPI instrumentation enabled")


def instrument_sqlalchemy(engine: Any) -> None:
    """
    Instrument a (sync) SQLAlchemy engine with OpenTelemetry.

    Async engines are instrumented through their ``sync_engine``.
    """
    if not settings.otel_enabled:
        logger.debug("OpenTelemetry disabled - skipping SQLAlchemy instrumentation")
        return
    SQLAlchemyInstrumentor().instrument(engine=engine, enable_commenter=True)
    logger.info("SQLAlchemy instrumentation enabled")


def instrument_httpx() -> None:
    if not settings.otel_enabled:
        logger.debug("OpenTelemetry disabled - skipping HTTPX instrumentation")
        return
    HTTPXClientInstrumentor().instrument()
    logger.info("HTTPX instrumentation enabled")


def shutdown_telemetry() -> None:
    """Flush pending spans and shut the tracer provider down."""
    global _tracer_provider

    if _tracer_provider is None:
        logger.debug("OpenTelemetry tracer provider not initialized")
        return

    logger.info("Shutting down OpenTelemetry tracer provider")
    _tracer_provider.shutdown()
    _tracer_provider = None


def _current_span_context():
    span = trace.get_current_span()
    if span is None or not span.is_recording():
        return None
    return span.get_span_context()


def get_trace_id() -> str | None:
    """Trace ID of the active span as hex, or None if no span is recording."""
    ctx = _current_span_context()
    return format(ctx.trace_id, "032x") if ctx is not None else None


def get_span_id() -> str | None:
    ctx = _current_span_context()
    return format(ctx.span_id, "016x") if ctx is not None else None

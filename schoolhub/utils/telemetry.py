"""OpenTelemetry tracing: provider setup, instrumentation and span helpers."""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from sqlalchemy.engine import Engine

from schoolhub import __version__
from schoolhub.config import Settings, settings

logger = logging.getLogger(__name__)

TRACER_NAME = "schoolhub"


def build_tracer_provider(config: Settings = settings) -> TracerProvider:
    """Tracer provider tagged with the service name, version and environment."""
    provider = TracerProvider(
        resource=Resource(
            attributes={
                SERVICE_NAME: config.OTEL_SERVICE_NAME,
                SERVICE_VERSION: __version__,
                "deployment.environment": config.ENVIRONMENT,
            }
        ),
        sampler=TraceIdRatioBased(config.OTEL_TRACE_SAMPLE_RATE),
    )
    if config.OTEL_EXPORT_CONSOLE:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    return provider


def setup_telemetry(config: Settings = settings) -> None:
    """Install the global tracer provider. Call once at startup."""
    trace.set_tracer_provider(build_tracer_provider(config))
    logger.info(
        "OpenTelemetry initialized",
        extra={
            "service_name": config.OTEL_SERVICE_NAME,
            "sample_rate": config.OTEL_TRACE_SAMPLE_RATE,
            "export_console": config.OTEL_EXPORT_CONSOLE,
        },
    )


def instrument(app: Any, *engines: Engine) -> None:
    """Instrument the FastAPI app and the given SQLAlchemy engines.

    Instrumentation failures are logged, not raised.
    """
    try:
        FastAPIInstrumentor.instrument_app(app)
    except Exception as e:
        logger.warning(f"Failed to instrument FastAPI: {e}")

    for engine in engines:
        try:
            SQLAlchemyInstrumentor().instrument(engine=engine)
        except Exception as e:
            logger.warning(f"Failed to instrument SQLAlchemy engine {engine.url}: {e}")


def get_tracer() -> trace.Tracer:
    """Tracer from whichever provider is currently installed."""
    return trace.get_tracer(TRACER_NAME, __version__)


@contextmanager
def trace_operation(
    name: str, attributes: Optional[dict] = None
) -> Iterator[trace.Span]:
    """Run a block inside a span; exceptions are recorded and re-raised.

    Example:
        with trace_operation("auth.refresh", {"auth.rotation": True}):
            ...
    """
    with get_tracer().start_as_current_span(
        name, record_exception=False, set_status_on_exception=False
    ) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)

        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(trace.Status(trace.StatusCode.ERROR, type(e).__name__))
            raise


def add_span_attributes(**attributes) -> None:
    """Add attributes to the current span, skipping ``None`` values."""
    span = trace.get_current_span()
    if not span.is_recording():
        return
    for key, value in attributes.items():
        if value is not None:
            span.set_attribute(key, value)

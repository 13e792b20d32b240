"""OpenTelemetry tracing of Database reconcile passes.

Each pass is one `reconcile_database` span with a child span per stage. Both
carry the Database namespace and name. The pass span also records the
ReconcileResult it ended with.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Tracer

from .constants import KIND_DATABASE
from .models import ReconcileRequest, ReconcileResult, Stage

# Global tracer instance
_tracer: Tracer | None = None


def initialize_tracing(service_name: str = "postgresql-operator") -> None:
    """Initialize OpenTelemetry tracing.

    Args:
        service_name: Name of the service for tracing

    Environment Variables:
        OTEL_EXPORTER_OTLP_ENDPOINT: OTLP endpoint URL (default: http://localhost:4317)
        OTEL_SERVICE_NAME: Service name (default: postgresql-operator)
    """
    global _tracer

    try:
        service_name = os.getenv("OTEL_SERVICE_NAME", service_name)
        endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")

        resource = Resource.create({
            "service.name": service_name,
            "service.version": os.getenv("OTEL_SERVICE_VERSION", "unknown"),
        })

        provider = TracerProvider(resource=resource)
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
        trace.set_tracer_provider(provider)

        _tracer = trace.get_tracer(service_name)
    except Exception as e:
        # Tracing initialization failures should not break the operator
        logging.getLogger(__name__).warning(f"Failed to initialize tracing: {e}")


def get_tracer() -> Tracer | None:
    """Get the global tracer instance, None when tracing is not initialized."""
    return _tracer


def database_attributes(request: ReconcileRequest) -> dict[str, Any]:
    return {
        "resource.kind": KIND_DATABASE,
        "database.namespace": request.namespace,
        "database.name": request.name,
    }


@contextmanager
def _span(name: str, attributes: dict[str, Any]) -> Iterator[Span | None]:
    tracer = get_tracer()
    if tracer is None:
        yield None
        return

    # start_as_current_span records the exception and sets ERROR status on raise
    with tracer.start_as_current_span(name, attributes=attributes) as span:
        yield span


@contextmanager
def reconcile_span(request: ReconcileRequest) -> Iterator[Span | None]:
    """Span covering one reconcile pass of a Database.

    Yields:
        Span object or None if tracing is not initialized
    """
    with _span("reconcile_database", database_attributes(request)) as span:
        yield span


@contextmanager
def stage_span(stage: Stage, request: ReconcileRequest) -> Iterator[Span | None]:
    """Child span for a single reconcile stage, named after the stage."""
    attributes = database_attributes(request)
    attributes["reconcile.stage"] = stage.value
    with _span(stage.value, attributes) as span:
        yield span


def record_result(span: Span | None, result: ReconcileResult) -> None:
    """Record how a pass ended on its span."""
    if span is None:
        return
    span.set_attribute("reconcile.requeue", result.requeue)
    span.set_attribute("reconcile.stage", result.stage.value)
    if result.created is not None:
        span.set_attribute("reconcile.created", result.created.value)

"""OpenTelemetry setup for the API and the overload monitor.

Instruments are created against the global proxies, so modules may call
``get_meter()`` / ``get_tracer()`` at import time; they start exporting once
``init_telemetry()`` installs real providers.
"""

import logging
import os
from typing import Optional

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

logger = logging.getLogger(__name__)

SERVICE_NAME = "ricky-api"

_initialized = False


def _exporter_endpoint() -> Optional[str]:
    """OTLP endpoint, "" for console export, or None when telemetry is off."""
    endpoint = os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        return endpoint
    if os.environ.get("OTEL_DEBUG", "false").lower() == "true":
        return ""
    return None


def init_telemetry(app_name: str = SERVICE_NAME) -> bool:
    """Install tracer and meter providers once.  Returns True when enabled."""
    global _initialized

    if _initialized:
        return True

    endpoint = _exporter_endpoint()
    if endpoint is None:
        logger.info("OpenTelemetry is disabled (set OTEL_EXPORTER_OTLP_ENDPOINT to enable).")
        return False

    logger.info(f"Initializing OpenTelemetry for {app_name} ({endpoint or 'console'})")
    resource = Resource.create({"service.name": app_name})

    # Monitor tick spans
    span_exporter = OTLPSpanExporter(endpoint=endpoint) if endpoint else ConsoleSpanExporter()
    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(BatchSpanProcessor(span_exporter))
    trace.set_tracer_provider(tracer_provider)

    # Tick counters and the load-ratio histogram
    metric_exporter = OTLPMetricExporter(endpoint=endpoint) if endpoint else ConsoleMetricExporter()
    reader = PeriodicExportingMetricReader(metric_exporter)
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))

    _initialized = True
    return True


def get_meter():
    return metrics.get_meter(f"{SERVICE_NAME}.metrics")


def get_tracer():
    return trace.get_tracer(f"{SERVICE_NAME}.tracer")

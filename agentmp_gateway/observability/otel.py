"""
OpenTelemetry configuration and initialization.

Sets up optional tracing and metrics for the gateway:
- Automatic instrumentation for FastAPI and HTTPx
- Counters and histograms for proxied requests and config reloads
- OTLP exporters for sending data to a collector

All ``record_*`` functions are noops until ``init_telemetry`` has run.
"""

import logging
import os
from typing import Any, Dict, Optional

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)

# Global variables
_meter: Optional[metrics.Meter] = None
_proxy_counter: Optional[metrics.Counter] = None
_proxy_duration_histogram: Optional[metrics.Histogram] = None
_reload_counter: Optional[metrics.Counter] = None


def init_telemetry(
    service_name: str = "agentmp-gateway",
    service_version: str = "1.0.0",
    otlp_endpoint: Optional[str] = None,
    environment: Optional[str] = None,
) -> None:
    """
    Initialize OpenTelemetry providers, exporters and instrumentation.

    Args:
        service_name: Name of the service
        service_version: Version of the service
        otlp_endpoint: OTLP gRPC endpoint; without it spans are not exported
        environment: Environment (dev, staging, prod)
    """
    global _meter

    if _meter is not None:
        return

    resource = Resource.create(
        attributes={
            "service.name": service_name,
            "service.version": service_version,
            "deployment.environment": environment or os.getenv("ENVIRONMENT", "development"),
            "process.pid": os.getpid(),
        }
    )

    trace_provider = TracerProvider(resource=resource)
    if otlp_endpoint:
        trace_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint))
        )
    trace.set_tracer_provider(trace_provider)

    metric_readers = []
    if otlp_endpoint:
        metric_readers.append(
            PeriodicExportingMetricReader(
                exporter=OTLPMetricExporter(endpoint=otlp_endpoint),
                export_interval_millis=30000,
            )
        )
    meter_provider = MeterProvider(resource=resource, metric_readers=metric_readers)
    metrics.set_meter_provider(meter_provider)
    _meter = meter_provider.get_meter(__name__)

    _init_custom_metrics()
    _setup_instrumentation()

    logger.info(
        "OpenTelemetry initialized",
        extra={"service_name": service_name, "otel_endpoint": otlp_endpoint},
    )


def _init_custom_metrics() -> None:
    global _proxy_counter, _proxy_duration_histogram, _reload_counter

    if not _meter:
        return

    _proxy_counter = _meter.create_counter(
        name="gateway_proxy_requests_total",
        description="Total number of proxied requests",
        unit="1"
    )

    _proxy_duration_histogram = _meter.create_histogram(
        name="gateway_proxy_request_duration_seconds",
        description="Time until the upstream response head arrived",
        unit="s"
    )

    _reload_counter = _meter.create_counter(
        name="gateway_config_reloads_total",
        description="Total number of configuration reloads",
        unit="1"
    )


def _setup_instrumentation() -> None:
    """Set up automatic instrumentation for FastAPI and outbound HTTPx calls."""
    FastAPIInstrumentor().instrument()
    HTTPXClientInstrumentor().instrument()
    logger.info("Automatic instrumentation configured")


def record_proxy_request(
    category: str,
    service_name: str,
    method: str,
    duration: float,
    status_code: Optional[int] = None,
    outcome: str = "responded",
) -> None:
    """
    Record one proxied request.

    Args:
        category: ``mcp`` or ``a2a``
        service_name: Configured upstream name
        method: HTTP method
        duration: Seconds until the upstream answered or the attempt failed
        status_code: Upstream status, if a response arrived
        outcome: ``responded`` or ``failed``
    """
    if not _proxy_counter or not _proxy_duration_histogram:
        return

    attributes: Dict[str, Any] = {
        "category": category,
        "service": service_name,
        "method": method,
        "outcome": outcome,
        "status_code": str(status_code) if status_code is not None else "none",
    }
    _proxy_counter.add(1, attributes=attributes)
    _proxy_duration_histogram.record(duration, attributes=attributes)


def record_config_reload(success: bool) -> None:
    if _reload_counter:
        _reload_counter.add(1, attributes={"success": str(success)})


def add_span_attributes(attributes: Dict[str, Any]) -> None:
    """Add attributes to the current active span."""
    span = trace.get_current_span()
    if span and span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, str(value))

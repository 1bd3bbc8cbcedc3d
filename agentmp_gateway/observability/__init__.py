"""Optional OpenTelemetry support.

The recording functions are always safe to call: until ``init_telemetry`` has
been run (``OTEL_ENABLED=true``) they do nothing.
"""

from agentmp_gateway.observability.otel import (
    add_span_attributes,
    init_telemetry,
    record_config_reload,
    record_proxy_request,
)

__all__ = [
    "add_span_attributes",
    "init_telemetry",
    "record_config_reload",
    "record_proxy_request",
]

"""Request forwarding, header handling and the gateway error taxonomy."""

from agentmp_gateway.proxy.errors import (
    ConfigError,
    ConfigMalformed,
    ConfigMissing,
    CredentialMissing,
    GatewayError,
    RouteNotFound,
    UpstreamUnreachable,
    error_response,
)
from agentmp_gateway.proxy.forwarder import ForwardingEngine
from agentmp_gateway.proxy.headers import build_outbound_headers, build_response_headers

__all__ = [
    "ConfigError",
    "ConfigMalformed",
    "ConfigMissing",
    "CredentialMissing",
    "GatewayError",
    "RouteNotFound",
    "UpstreamUnreachable",
    "error_response",
    "ForwardingEngine",
    "build_outbound_headers",
    "build_response_headers",
]

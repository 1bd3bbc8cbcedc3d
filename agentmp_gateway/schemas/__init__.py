"""Pydantic schemas for configuration and response validation."""

from agentmp_gateway.schemas.gateway import (
    GatewayConfigFile,
    HealthResponse,
    EndpointsSchema,
    ConfigResponse,
    ReloadResponse,
    ReloadErrorResponse,
)

__all__ = [
    "GatewayConfigFile",
    "HealthResponse",
    "EndpointsSchema",
    "ConfigResponse",
    "ReloadResponse",
    "ReloadErrorResponse",
]

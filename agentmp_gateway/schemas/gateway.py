"""
Pydantic schemas for the gateway.

Defines the routing configuration file format and the response models of the
management endpoints:
- GET /health
- GET /config
- POST /config/reload
- GET /
"""
from typing import Any, Dict, List
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# Routing configuration file
# ============================================================================

class GatewayConfigFile(BaseModel):
    """Contents of ``config.json``: upstream name to base URL, per category."""

    model_config = ConfigDict(extra="ignore")

    mcpServers: Dict[str, str] = Field(default_factory=dict)
    a2aAgents: Dict[str, str] = Field(default_factory=dict)

    @field_validator("mcpServers", "a2aAgents", mode="before")
    @classmethod
    def default_empty(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("mcpServers", "a2aAgents")
    @classmethod
    def validate_routes(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Names must be non-empty and contain no ``/``; URLs must be absolute http(s)."""
        for name, url in v.items():
            if not name or "/" in name:
                raise ValueError(f"Invalid service name {name!r}")
            parts = urlsplit(url)
            if parts.scheme not in ("http", "https") or not parts.netloc:
                raise ValueError(f"Service {name!r} must map to an absolute HTTP(S) URL, got {url!r}")
        return v


# ============================================================================
# Management endpoints
# ============================================================================

class HealthResponse(BaseModel):
    """Response schema for GET /health."""

    status: str = "healthy"
    timestamp: str = Field(..., description="ISO-8601 UTC time of the check")
    port: int
    configuredServers: List[str]
    configuredAgents: List[str]


class EndpointsSchema(BaseModel):
    mcp: List[str]
    a2a: List[str]


class ConfigResponse(BaseModel):
    """Response schema for GET /config. Upstream URLs are never exposed."""

    mcpServers: List[str]
    a2aAgents: List[str]
    endpoints: EndpointsSchema


class ReloadResponse(BaseModel):
    """Response schema for a successful POST /config/reload."""

    success: bool = True
    message: str = "Configuration reloaded"
    mcpServers: List[str]
    a2aAgents: List[str]


class ReloadErrorResponse(BaseModel):
    """Response schema for a rejected POST /config/reload."""

    success: bool = False
    error: str

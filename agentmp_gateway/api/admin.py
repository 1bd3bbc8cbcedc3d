"""
Management API endpoints.

- GET / - Usage information
- GET /health - Liveness and configured names
- GET /config - Configured names and their local URLs
- POST /config/reload - Re-read the routing configuration file
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Union

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from agentmp_gateway.api.deps import get_gateway
from agentmp_gateway.proxy.errors import ConfigError
from agentmp_gateway.routing import Category, RoutingTable
from agentmp_gateway.schemas.gateway import (
    ConfigResponse,
    EndpointsSchema,
    HealthResponse,
    ReloadErrorResponse,
    ReloadResponse,
)
from agentmp_gateway.services.gateway import Gateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"])


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def local_endpoints(gateway: Gateway, table: RoutingTable, category: Category) -> list[str]:
    return [
        gateway.local_url(f"/{category.value}/{name}/") for name in table.list_names(category)
    ]


@router.get("/")
async def root(gateway: Gateway = Depends(get_gateway)) -> Dict[str, Any]:
    """Root endpoint with usage information."""
    settings = gateway.settings
    table = gateway.store.snapshot()
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "description": "Local gateway for AgentMP MCP servers and A2A agents",
        "usage": {
            "mcpServers": gateway.local_url("/mcp/{serverName}/"),
            "a2aAgents": gateway.local_url("/a2a/{agentName}/"),
            "availableServers": table.list_names(Category.MCP),
            "availableAgents": table.list_names(Category.A2A),
            "healthCheck": gateway.local_url("/health"),
            "configuration": gateway.local_url("/config"),
        },
        "setup": {
            "environment": "Set AGENTMP_API_KEY in .env file",
            "configuration": f"Edit {gateway.loader.path.name} to add/remove servers and agents",
            "port": "Set PORT in .env file (default: 12345)",
        },
    }


@router.get("/health", response_model=HealthResponse)
async def health_check(gateway: Gateway = Depends(get_gateway)) -> HealthResponse:
    """Health check endpoint."""
    table = gateway.store.snapshot()
    return HealthResponse(
        status="healthy",
        timestamp=_utc_timestamp(),
        port=gateway.port,
        configuredServers=table.list_names(Category.MCP),
        configuredAgents=table.list_names(Category.A2A),
    )


@router.get("/config", response_model=ConfigResponse)
async def get_config(gateway: Gateway = Depends(get_gateway)) -> ConfigResponse:
    """List configured names and local endpoints. Upstream URLs are not exposed."""
    table = gateway.store.snapshot()
    return ConfigResponse(
        mcpServers=table.list_names(Category.MCP),
        a2aAgents=table.list_names(Category.A2A),
        endpoints=EndpointsSchema(
            mcp=local_endpoints(gateway, table, Category.MCP),
            a2a=local_endpoints(gateway, table, Category.A2A),
        ),
    )


@router.post(
    "/config/reload",
    response_model=ReloadResponse,
    responses={500: {"model": ReloadErrorResponse}},
    summary="Reload routing configuration",
    description="Re-read the configuration file and atomically replace the routing table. "
                "On failure the previous table stays active.",
)
async def reload_config(
    gateway: Gateway = Depends(get_gateway),
) -> Union[ReloadResponse, JSONResponse]:
    try:
        table = await gateway.reload()
    except ConfigError as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ReloadErrorResponse(error=e.message).model_dump(),
        )

    logger.info(
        f"Configuration reloaded: {len(table.mcp_servers)} MCP servers, "
        f"{len(table.a2a_agents)} A2A agents"
    )
    return ReloadResponse(
        mcpServers=table.list_names(Category.MCP),
        a2aAgents=table.list_names(Category.A2A),
    )

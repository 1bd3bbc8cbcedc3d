"""FastAPI application entry point."""

import asyncio
import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agentmp_gateway.api import admin, proxy
from agentmp_gateway.config import Settings, get_settings
from agentmp_gateway.middleware import register_exception_handlers
from agentmp_gateway.proxy.errors import CredentialMissing
from agentmp_gateway.routing import Category, RoutingTable
from agentmp_gateway.services.config_loader import ConfigLoader
from agentmp_gateway.services.gateway import Gateway
from agentmp_gateway.utils.http import create_http_client

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def log_startup_banner(gateway: Gateway, table: RoutingTable) -> None:
    settings = gateway.settings
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} started")
    logger.info(f"Server running on: {gateway.local_url()}")
    logger.info("API key: configured")
    logger.info("MCP servers:")
    for name in table.list_names(Category.MCP):
        logger.info(f"  - {name}: {gateway.local_url(f'/mcp/{name}/')}")
    logger.info("A2A agents:")
    for name in table.list_names(Category.A2A):
        logger.info(f"  - {name}: {gateway.local_url(f'/a2a/{name}/')}")
    logger.info(f"Documentation: {gateway.local_url()}")
    logger.info(f"Health check: {gateway.local_url('/health')}")
    logger.info(f"Configuration: {gateway.local_url('/config')}")


def create_app(
    settings: Optional[Settings] = None,
    upstream_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the gateway application.

    Args:
        settings: Settings to use; defaults to the cached environment settings
        upstream_transport: Transport for the outbound client (tests use
            ``httpx.MockTransport``)
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # ==================== STARTUP ====================
        loader = ConfigLoader(settings.CONFIG_PATH)
        table = await asyncio.to_thread(loader.load)

        client_kwargs = {"transport": upstream_transport} if upstream_transport else {}
        client = create_http_client(
            timeout=settings.PROXY_TIMEOUT,
            connect_timeout=settings.PROXY_CONNECT_TIMEOUT,
            max_connections=settings.PROXY_MAX_CONNECTIONS,
            max_keepalive_connections=settings.PROXY_MAX_KEEPALIVE,
            **client_kwargs,
        )
        gateway = Gateway(settings=settings, loader=loader, table=table, client=client)
        app.state.gateway = gateway
        log_startup_banner(gateway, table)

        yield  # Application runs here

        # ==================== SHUTDOWN ====================
        logger.info(f"Shutting down {settings.APP_NAME}...")
        await gateway.aclose()
        logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Local gateway for AgentMP MCP servers and A2A agents",
        docs_url="/docs",
        redoc_url=None,
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(admin.router)
    app.include_router(proxy.router)

    return app


def run() -> None:
    """Console entry point: load settings, then serve until interrupted."""
    try:
        settings = get_settings()
    except CredentialMissing as e:
        configure_logging()
        logger.error(e.message)
        sys.exit(1)

    configure_logging(settings.LOG_LEVEL)

    if settings.OTEL_ENABLED:
        from agentmp_gateway.observability import init_telemetry
        init_telemetry(
            service_name=settings.OTEL_SERVICE_NAME,
            service_version=settings.APP_VERSION,
            otlp_endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
            environment=os.getenv("ENVIRONMENT", "development"),
        )

    # uvicorn handles SIGINT/SIGTERM and drains in-flight requests
    uvicorn.run(
        create_app(settings),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        timeout_graceful_shutdown=settings.SHUTDOWN_GRACE_SECONDS,
    )


if __name__ == "__main__":
    run()

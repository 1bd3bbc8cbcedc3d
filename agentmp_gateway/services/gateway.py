"""
Process-wide gateway state.

Bundles the live routing table, the config loader, the shared outbound client
and the forwarding engine. One instance is created per application lifespan
and stored on ``app.state.gateway``.
"""
import asyncio
import logging

import httpx

from agentmp_gateway.config import Settings
from agentmp_gateway.observability import record_config_reload
from agentmp_gateway.proxy.errors import ConfigError
from agentmp_gateway.proxy.forwarder import ForwardingEngine
from agentmp_gateway.routing.table import RoutingTable, RoutingTableStore
from agentmp_gateway.services.config_loader import ConfigLoader

logger = logging.getLogger(__name__)


class Gateway:
    """Owns the routing table and everything needed to proxy a request."""

    def __init__(
        self,
        settings: Settings,
        loader: ConfigLoader,
        table: RoutingTable,
        client: httpx.AsyncClient,
    ):
        self.settings = settings
        self.loader = loader
        self.store = RoutingTableStore(table)
        self.client = client
        self.engine = ForwardingEngine(client, settings.AGENTMP_API_KEY)
        self._reload_lock = asyncio.Lock()

    @property
    def port(self) -> int:
        return self.settings.PORT

    def local_url(self, path: str = "") -> str:
        return f"http://localhost:{self.port}{path}"

    async def reload(self) -> RoutingTable:
        """
        Re-read the configuration file and publish it as the live table.

        The file is parsed in a worker thread. On failure the current table
        stays in place.

        Raises:
            ConfigError: If the file is missing, unreadable or malformed.
        """
        async with self._reload_lock:
            try:
                table = await asyncio.to_thread(self.loader.reload)
            except ConfigError as e:
                logger.error(f"Configuration reload failed: {e.message}")
                record_config_reload(success=False)
                raise
            self.store.replace(table)
            record_config_reload(success=True)
            return table

    async def aclose(self) -> None:
        await self.client.aclose()

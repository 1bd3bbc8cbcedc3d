"""
Routing table for upstream MCP servers and A2A agents.

A ``RoutingTable`` is never mutated after construction. Reloading builds a new
table and publishes it through ``RoutingTableStore.replace``; a request that
has taken a snapshot keeps using it until it finishes.
"""
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from agentmp_gateway.proxy.errors import RouteNotFound


class Category(str, Enum):
    """Upstream category, also the first segment of the local route."""

    MCP = "mcp"
    A2A = "a2a"

    @property
    def display_name(self) -> str:
        return "MCP server" if self is Category.MCP else "A2A agent"

    @property
    def available_key(self) -> str:
        """Key listing known names in a not-found body."""
        return "availableServers" if self is Category.MCP else "availableAgents"

    @property
    def target_key(self) -> str:
        """Key naming the upstream in a proxy error body."""
        return "server" if self is Category.MCP else "agent"


class RoutingTable:
    """Immutable snapshot of ``name -> base URL`` for both categories."""

    __slots__ = ("_routes",)

    def __init__(
        self,
        mcp_servers: Optional[Mapping[str, str]] = None,
        a2a_agents: Optional[Mapping[str, str]] = None,
    ):
        # dict() copies preserve configuration order
        self._routes = MappingProxyType({
            Category.MCP: MappingProxyType(dict(mcp_servers or {})),
            Category.A2A: MappingProxyType(dict(a2a_agents or {})),
        })

    @classmethod
    def from_config(cls, config) -> "RoutingTable":
        """Build a table from a validated ``GatewayConfigFile``."""
        return cls(mcp_servers=config.mcpServers, a2a_agents=config.a2aAgents)

    @property
    def mcp_servers(self) -> Mapping[str, str]:
        return self._routes[Category.MCP]

    @property
    def a2a_agents(self) -> Mapping[str, str]:
        return self._routes[Category.A2A]

    def resolve(self, category: Category, name: str) -> str:
        """
        Return the upstream base URL for ``name``.

        Raises:
            RouteNotFound: If no upstream with exactly that name exists. The
                error lists the names known to this snapshot.
        """
        routes = self._routes[category]
        try:
            return routes[name]
        except KeyError:
            raise RouteNotFound(category, name, list(routes)) from None

    def list_names(self, category: Category) -> List[str]:
        return list(self._routes[category])

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {
            "mcpServers": dict(self.mcp_servers),
            "a2aAgents": dict(self.a2a_agents),
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RoutingTable):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f"RoutingTable(mcp_servers={self.list_names(Category.MCP)}, "
            f"a2a_agents={self.list_names(Category.A2A)})"
        )


class RoutingTableStore:
    """Holder for the live table; swapping is a single reference assignment."""

    def __init__(self, table: RoutingTable):
        self._table = table

    def snapshot(self) -> RoutingTable:
        return self._table

    def replace(self, table: RoutingTable) -> RoutingTable:
        """Publish ``table`` and return the one it replaced."""
        previous, self._table = self._table, table
        return previous

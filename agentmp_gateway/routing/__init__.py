"""Routing table and path rewriting."""

from agentmp_gateway.routing.table import Category, RoutingTable, RoutingTableStore
from agentmp_gateway.routing.rewriter import (
    RouteTarget,
    join_upstream_url,
    rewrite,
    split_route_path,
)

__all__ = [
    "Category",
    "RoutingTable",
    "RoutingTableStore",
    "RouteTarget",
    "join_upstream_url",
    "rewrite",
    "split_route_path",
]

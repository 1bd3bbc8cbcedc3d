"""
Proxy API endpoints.

- ANY /mcp/{serverName}/{rest} - Forward to a configured MCP server
- ANY /a2a/{agentName}/{rest} - Forward to a configured A2A agent

The ``/{category}/{name}`` prefix is stripped before forwarding; the rest of
the path and the query string are passed through as received. These are
plain Starlette routes registered without a method list, so every method
(including extension methods such as PROPFIND) reaches the upstream.
"""
from fastapi import APIRouter, Request, Response

from agentmp_gateway.api.deps import get_gateway
from agentmp_gateway.routing import Category, rewrite

router = APIRouter(tags=["Proxy"])


def _raw_path(request: Request) -> str:
    raw = request.scope.get("raw_path")
    if not raw:
        return request.url.path
    # Some ASGI clients include the query string in raw_path
    return raw.decode("latin-1").split("?", 1)[0]


async def _proxy(category: Category, request: Request) -> Response:
    gateway = get_gateway(request)
    # One snapshot per request, used for both resolution and not-found listing
    table = gateway.store.snapshot()
    target = rewrite(table, category, _raw_path(request), request.url.query)
    return await gateway.engine.forward(target, request)


async def proxy_mcp(request: Request) -> Response:
    """Proxy a request to an MCP server."""
    return await _proxy(Category.MCP, request)


async def proxy_a2a(request: Request) -> Response:
    """Proxy a request to an A2A agent."""
    return await _proxy(Category.A2A, request)


for _path in ("/mcp/{server_name}", "/mcp/{server_name}/{rest:path}"):
    router.add_route(_path, proxy_mcp, methods=None, include_in_schema=False)

for _path in ("/a2a/{agent_name}", "/a2a/{agent_name}/{rest:path}"):
    router.add_route(_path, proxy_a2a, methods=None, include_in_schema=False)

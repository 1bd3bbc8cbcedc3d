"""Path rewriting from local gateway routes to upstream URLs."""
from dataclasses import dataclass
from typing import Tuple
from urllib.parse import unquote

from agentmp_gateway.routing.table import Category, RoutingTable


@dataclass(frozen=True)
class RouteTarget:
    """A resolved upstream destination for one inbound request."""

    category: Category
    service_name: str
    upstream_base_url: str
    upstream_url: str


def split_route_path(raw_path: str) -> Tuple[str, str]:
    """
    Split ``/{category}/{serviceName}/{rest...}`` into ``(serviceName, rest)``.

    ``raw_path`` is the undecoded request path. The service name is
    percent-decoded for lookup; ``rest`` is returned exactly as received,
    without its leading slash, and may be empty.

    Raises:
        ValueError: If the path has no service name segment.
    """
    parts = raw_path.lstrip("/").split("/", 2)
    if len(parts) < 2 or not parts[1]:
        raise ValueError(f"Not a gateway route: {raw_path!r}")
    rest = parts[2] if len(parts) == 3 else ""
    return unquote(parts[1]), rest


def join_upstream_url(base_url: str, rest: str, query: str = "") -> str:
    """Join base and rest with exactly one ``/`` and append the raw query string."""
    url = f"{base_url.rstrip('/')}/{rest.lstrip('/')}"
    if query:
        url = f"{url}?{query}"
    return url


def rewrite(
    table: RoutingTable,
    category: Category,
    raw_path: str,
    query: str = "",
) -> RouteTarget:
    """
    Resolve an inbound route against ``table`` and build the upstream URL.

    Raises:
        RouteNotFound: If the service name is not configured for ``category``.
    """
    name, rest = split_route_path(raw_path)
    base_url = table.resolve(category, name)
    return RouteTarget(
        category=category,
        service_name=name,
        upstream_base_url=base_url,
        upstream_url=join_upstream_url(base_url, rest, query),
    )

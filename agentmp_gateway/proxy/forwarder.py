"""
Forwarding engine.

Sends one inbound request to its resolved upstream with the gateway
credential injected, and streams the upstream response back verbatim.
Upstream status codes are never interpreted; only transport failures become
errors. There are no retries, since proxied calls may not be idempotent.
"""
import logging
import time
from typing import TYPE_CHECKING, AsyncIterator, Optional

import httpx
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import StreamingResponse

from agentmp_gateway.observability import add_span_attributes, record_proxy_request
from agentmp_gateway.proxy.errors import UpstreamUnreachable
from agentmp_gateway.proxy.headers import build_outbound_headers, build_response_headers

if TYPE_CHECKING:
    from agentmp_gateway.routing.rewriter import RouteTarget

logger = logging.getLogger(__name__)


def _has_body(request: Request) -> bool:
    headers = request.headers
    return "content-length" in headers or "transfer-encoding" in headers


def _describe_error(exc: httpx.RequestError) -> str:
    # Some httpx errors (notably timeouts) stringify to an empty message
    return str(exc) or exc.__class__.__name__


class ForwardingEngine:
    """Proxies requests to upstreams through a shared ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient, credential: str):
        self._client = client
        self._credential = credential

    def build_upstream_request(self, target: "RouteTarget", request: Request) -> httpx.Request:
        """Build the outbound request: same method, streamed body, rewritten URL."""
        headers = build_outbound_headers(
            ((k.decode("latin-1"), v.decode("latin-1")) for k, v in request.headers.raw),
            self._credential,
        )
        content: Optional[AsyncIterator[bytes]] = request.stream() if _has_body(request) else None

        upstream_request = self._client.build_request(
            request.method,
            target.upstream_url,
            headers=[(k.encode("latin-1"), v.encode("latin-1")) for k, v in headers],
            content=content,
        )
        if "accept-encoding" not in request.headers:
            upstream_request.headers["Accept-Encoding"] = "identity"
        return upstream_request

    async def forward(self, target: "RouteTarget", request: Request) -> StreamingResponse:
        """
        Forward ``request`` to ``target`` and stream the response back.

        Raises:
            UpstreamUnreachable: If the upstream could not be reached or did not
                answer within the configured timeout.
        """
        name = target.service_name
        category = target.category.value
        logger.info(
            f"{category.upper()} proxy [{name}]: {request.method} {request.url.path} -> {target.upstream_url}",
            extra={
                "category": category,
                "service": name,
                "method": request.method,
                "path": request.url.path,
                "target": target.upstream_url,
            },
        )
        add_span_attributes({
            "gateway.category": category,
            "gateway.service": name,
            "gateway.target": target.upstream_url,
        })

        upstream_request = self.build_upstream_request(target, request)
        started = time.perf_counter()
        try:
            upstream_response = await self._client.send(upstream_request, stream=True)
        except httpx.RequestError as e:
            reason = _describe_error(e)
            logger.error(
                f"{category.upper()} proxy error [{name}]: {reason}",
                extra={"category": category, "service": name, "outcome": "failed"},
            )
            record_proxy_request(
                category, name, request.method, time.perf_counter() - started, outcome="failed"
            )
            raise UpstreamUnreachable(target.category, name, reason) from e

        logger.info(
            f"{category.upper()} response [{name}]: {upstream_response.status_code}",
            extra={
                "category": category,
                "service": name,
                "status_code": upstream_response.status_code,
                "outcome": "responded",
            },
        )
        record_proxy_request(
            category,
            name,
            request.method,
            time.perf_counter() - started,
            status_code=upstream_response.status_code,
        )

        response = StreamingResponse(
            self._relay_body(upstream_response, target),
            status_code=upstream_response.status_code,
            background=BackgroundTask(upstream_response.aclose),
        )
        for key, value in build_response_headers(
            (k.decode("latin-1"), v.decode("latin-1")) for k, v in upstream_response.headers.raw
        ):
            response.headers.append(key, value)
        return response

    async def _relay_body(
        self, upstream_response: httpx.Response, target: "RouteTarget"
    ) -> AsyncIterator[bytes]:
        """Yield the upstream body as received, without decoding."""
        try:
            async for chunk in upstream_response.aiter_raw():
                yield chunk
        except httpx.RequestError as e:
            logger.error(
                f"{target.category.value.upper()} stream interrupted [{target.service_name}]: "
                f"{_describe_error(e)}"
            )
            raise
        finally:
            await upstream_response.aclose()

"""
Header transformation pipeline for proxied requests and responses.

Headers are handled as ``(name, value)`` lists so repeated lines survive.
Each step takes a list and returns a new one; none mutates its input.
Outbound request headers go through ``REQUEST_PIPELINE`` and then the
credential injection step, which is always applied last.
"""
from typing import Callable, Iterable, List, Sequence, Tuple

HeaderList = List[Tuple[str, str]]
HeaderStep = Callable[[HeaderList], HeaderList]

# RFC 9110 section 7.6.1, plus Host which the outbound client sets itself
HOP_BY_HOP_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "proxy-connection",
    "te",
    "trailer",
    "trailers",
    "transfer-encoding",
    "upgrade",
    "host",
})


def _connection_tokens(headers: Sequence[Tuple[str, str]]) -> set:
    tokens = set()
    for name, value in headers:
        if name.lower() == "connection":
            tokens.update(t.strip().lower() for t in value.split(",") if t.strip())
    return tokens


def strip_hop_by_hop(headers: HeaderList) -> HeaderList:
    """Drop hop-by-hop headers, including any listed in ``Connection``."""
    dropped = HOP_BY_HOP_HEADERS | _connection_tokens(headers)
    return [(name, value) for name, value in headers if name.lower() not in dropped]


def strip_authorization(headers: HeaderList) -> HeaderList:
    """Drop the client's own credentials; they must never reach an upstream."""
    return [(name, value) for name, value in headers if name.lower() != "authorization"]


def inject_credential(credential: str) -> HeaderStep:
    """Build the step that sets ``Authorization: Bearer <credential>``."""
    def _inject(headers: HeaderList) -> HeaderList:
        return strip_authorization(headers) + [("Authorization", f"Bearer {credential}")]
    return _inject


REQUEST_PIPELINE: Tuple[HeaderStep, ...] = (strip_hop_by_hop, strip_authorization)
RESPONSE_PIPELINE: Tuple[HeaderStep, ...] = (strip_hop_by_hop,)


def apply_pipeline(headers: Iterable[Tuple[str, str]], steps: Iterable[HeaderStep]) -> HeaderList:
    result = list(headers)
    for step in steps:
        result = step(result)
    return result


def build_outbound_headers(inbound: Iterable[Tuple[str, str]], credential: str) -> HeaderList:
    """Copy client headers for the upstream request with the gateway credential injected."""
    return apply_pipeline(inbound, REQUEST_PIPELINE + (inject_credential(credential),))


def build_response_headers(upstream: Iterable[Tuple[str, str]]) -> HeaderList:
    """Copy upstream response headers for the client."""
    return apply_pipeline(upstream, RESPONSE_PIPELINE)

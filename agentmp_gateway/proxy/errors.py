"""
Gateway error taxonomy.

Every failure the gateway reports to a client is a ``GatewayError`` subclass
carrying its own HTTP status and JSON body, so the mapping from error to
response is a plain function that can be exercised without a server.
"""
from typing import TYPE_CHECKING, Any, Dict, List, Tuple

from fastapi import status

if TYPE_CHECKING:
    from agentmp_gateway.routing.table import Category


class GatewayError(Exception):
    """Base class for errors surfaced by the gateway."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class CredentialMissing(GatewayError):
    """The upstream bearer credential is not configured. Fatal at startup."""


class ConfigError(GatewayError):
    """The routing configuration file could not be used."""

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message}


class ConfigMissing(ConfigError):
    """The routing configuration file does not exist."""


class ConfigMalformed(ConfigError):
    """The routing configuration file is not valid JSON or has the wrong shape."""


class RouteNotFound(GatewayError):
    """No upstream is configured under the requested name."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, category: "Category", name: str, available: List[str]):
        super().__init__(f"{category.display_name} '{name}' not found in configuration")
        self.category = category
        self.name = name
        self.available = list(available)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            self.category.available_key: self.available,
        }


class UpstreamUnreachable(GatewayError):
    """The upstream could not be reached (DNS, refused, reset, timeout)."""

    def __init__(self, category: "Category", name: str, reason: str):
        super().__init__(reason)
        self.category = category
        self.name = name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "Proxy error",
            "message": self.message,
            self.category.target_key: self.name,
        }


INTERNAL_ERROR_BODY: Dict[str, Any] = {
    "error": "Internal server error",
    "message": "An unexpected error occurred",
}


def error_response(exc: Exception) -> Tuple[int, Dict[str, Any]]:
    """Map any exception to the status code and JSON body returned to the client."""
    if isinstance(exc, GatewayError):
        return exc.status_code, exc.to_dict()
    return status.HTTP_500_INTERNAL_SERVER_ERROR, dict(INTERNAL_ERROR_BODY)

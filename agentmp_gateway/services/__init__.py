"""Services module."""
from agentmp_gateway.services.config_loader import ConfigLoader, DEFAULT_CONFIG
from agentmp_gateway.services.gateway import Gateway

__all__ = [
    "ConfigLoader",
    "DEFAULT_CONFIG",
    "Gateway",
]

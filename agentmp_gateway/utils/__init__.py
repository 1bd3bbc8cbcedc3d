"""Utility package for the AgentMP gateway."""

from .http import create_http_client

__all__ = ["create_http_client"]

"""Local gateway that proxies MCP servers and A2A agents with a shared bearer credential."""

__version__ = "1.0.0"

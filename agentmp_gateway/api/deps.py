"""FastAPI dependencies shared by the API routers."""

from fastapi import Request

from agentmp_gateway.services.gateway import Gateway


def get_gateway(request: Request) -> Gateway:
    """Dependency to get the Gateway created by the application lifespan."""
    return request.app.state.gateway

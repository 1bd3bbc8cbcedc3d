"""Exception handlers forming the outermost error boundary of the gateway."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from agentmp_gateway.proxy.errors import GatewayError, error_response

logger = logging.getLogger(__name__)


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Render a classified gateway error with its own status and body."""
    status_code, body = error_response(exc)
    return JSONResponse(status_code=status_code, content=body)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log an unexpected fault and hide its details from the client."""
    logger.exception(f"Server error handling {request.method} {request.url.path}")
    status_code, body = error_response(exc)
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

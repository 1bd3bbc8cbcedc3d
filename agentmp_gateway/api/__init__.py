"""API routers for the gateway."""

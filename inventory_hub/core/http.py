"""Shared outbound HTTP client for service-to-service calls."""

import httpx
from fastapi import Request

from inventory_hub.core.config_file import get_settings


def build_http_client() -> httpx.AsyncClient:
    """Create the process-wide client; closed by the application lifespan."""
    settings = get_settings()
    return httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Dependency returning the client created at startup."""
    return request.app.state.http_client

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

import inventory_hub.core.logging  # noqa: F401  configures the application loggers
from inventory_hub.core.auth.token_manager import TokenRefreshGuard
from inventory_hub.core.config_file import get_settings
from inventory_hub.core.exceptions import APIException, DomainError, to_api_exception
from inventory_hub.core.http import build_http_client
from inventory_hub.core.pubsub import get_event_publisher, get_rabbitmq_client
from inventory_hub.modules.approvals.api import router as approvals_router
from inventory_hub.modules.notifications.consumer import NotificationEventConsumer
from inventory_hub.modules.notifications.directory import UserDirectory
from inventory_hub.modules.notifications.sender import BusNotificationSender
from inventory_hub.modules.products.api import router as products_router
from inventory_hub.modules.products.consumer import ProductTransferConsumer
from inventory_hub.modules.routes.api import router as routes_router
from inventory_hub.modules.routes.consumer import RouteEventConsumer
from inventory_hub.modules.routes.product_client import ProductServiceClient

logger = logging.getLogger(__name__)


def _build_consumers(service_name: str, client, http_client) -> list:
    """Bus consumers run by this process, selected by SERVICE_NAME."""
    consumers = []
    if service_name in ("route", "all"):
        consumers.append(
            RouteEventConsumer(
                client,
                product_client=ProductServiceClient(http_client, get_settings().PRODUCT_SERVICE_URL),
            )
        )
    if service_name in ("product", "all"):
        consumers.append(ProductTransferConsumer(client))
    if service_name in ("notification", "all"):
        consumers.append(
            NotificationEventConsumer(
                client,
                directory=UserDirectory(http_client),
                sender=BusNotificationSender(get_event_publisher()),
            )
        )
    return consumers


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    app.state.http_client = build_http_client()
    app.state.refresh_guard = TokenRefreshGuard(
        cooldown_seconds=settings.TOKEN_REFRESH_COOLDOWN_SECONDS,
        lock_timeout_seconds=settings.TOKEN_REFRESH_LOCK_TIMEOUT_SECONDS,
    )

    client = get_rabbitmq_client()
    await client.connect()

    consumers = _build_consumers(settings.SERVICE_NAME, client, app.state.http_client)
    for consumer in consumers:
        await consumer.start()
    logger.info(f"Service '{settings.SERVICE_NAME}' started with {len(consumers)} consumer(s)")

    try:
        yield
    finally:
        for consumer in consumers:
            await consumer.stop()
        await client.close()
        app.state.refresh_guard.close()
        await app.state.http_client.aclose()
        logger.info(f"Service '{settings.SERVICE_NAME}' stopped")


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Handle APIException and return standard error format."""
    # exc.detail already contains {"error": {...}}, add data: null
    response_content = exc.detail.copy()
    response_content["data"] = None
    return JSONResponse(
        status_code=exc.status_code,
        content=response_content,
    )


async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Render domain errors raised by services like the matching APIException."""
    return await api_exception_handler(request, to_api_exception(exc))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors and format them in the standard error shape."""
    details = {}
    for error in exc.errors():
        # Ignore "body", "query", "path" and get the actual field name
        field_path = error["loc"]
        field_name = field_path[-1] if len(field_path) > 1 else field_path[0]

        if field_name not in details:
            details[field_name] = []
        details[field_name].append(error["msg"])

    response_content = {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Validation failed",
            "details": details,
        },
        "data": None,
    }

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=response_content,
    )


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Build the application.

    Args:
        use_lifespan: Connect the bus and start consumers on startup. Tests pass False.
    """
    settings = get_settings()
    app = FastAPI(
        title="Inventory Hub API",
        version="0.1.0",
        description="Inventory products, transfer routes and approval workflow",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(DomainError, domain_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.get("/healthz", tags=["system"])
    def healthz():
        """Health check endpoint."""
        return {
            "status": "ok",
            "env": settings.ENV,
            "service": settings.SERVICE_NAME,
        }

    app.include_router(products_router)
    app.include_router(routes_router)
    app.include_router(approvals_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "inventory_hub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=get_settings().DEBUG,
    )

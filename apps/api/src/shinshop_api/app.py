from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from loguru import logger

from .api.routes import api_router
from .core.logging import configure_logging
from .core.settings import Settings, get_settings
from .observability.tracing import configure_tracing
from .services.commerce.medusa import OrderPlacedSubscriber, OrderSource, build_order_source
from .services.notifications import (
    CustomOrderNotificationService,
    EmailBackend,
    build_email_backend,
)
from .version import APP_VERSION, SERVICE_NAME


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if not settings.business_email:
        logger.warning("BUSINESS_EMAIL not configured; custom order notifications will fail")
    if not settings.snipcart_webhook_secret and not settings.allow_unsigned_webhooks:
        logger.warning("SNIPCART_WEBHOOK_SECRET not configured; storefront webhooks will be rejected")
    if app.state.order_source is None:
        logger.info("Commerce backend order lookup disabled", reason="medusa_backend_url is not set")

    http_client: httpx.AsyncClient | None = app.state.http_client
    try:
        yield
    finally:
        if http_client is not None:
            await http_client.aclose()


def create_app(
    settings: Settings | None = None,
    *,
    email_backend: EmailBackend | None = None,
    order_source: OrderSource | None = None,
) -> FastAPI:
    """Application factory for the Shin Shop order notification service."""

    if settings is None:
        settings = get_settings()
    configure_logging(
        service_name=SERVICE_NAME,
        environment=settings.environment,
        version=APP_VERSION,
    )

    app = FastAPI(
        title="Shin Shop Order Notifications API",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    configure_tracing(
        app,
        settings,
        service_name=SERVICE_NAME,
        service_version=APP_VERSION,
    )

    http_client: httpx.AsyncClient | None = None
    if order_source is None and settings.medusa_backend_url:
        http_client = httpx.AsyncClient(timeout=10.0)
        order_source = build_order_source(settings, http_client=http_client)

    backend = email_backend or build_email_backend(settings)
    service = CustomOrderNotificationService.from_settings(settings, backend)

    app.state.settings = settings
    app.state.email_backend = backend
    app.state.notification_service = service
    app.state.order_source = order_source
    app.state.http_client = http_client
    app.state.order_placed_subscriber = (
        OrderPlacedSubscriber(order_source, service, marker=settings.custom_item_marker)
        if order_source is not None
        else None
    )

    app.include_router(api_router)
    return app

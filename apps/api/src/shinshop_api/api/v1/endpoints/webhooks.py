"""Inbound order webhooks that trigger custom-order notifications."""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from shinshop_api.api.dependencies.notifications import (
    get_app_settings,
    get_notification_service,
    get_order_source,
)
from shinshop_api.core.settings import Settings
from shinshop_api.schemas.webhooks import MedusaWebhookEnvelope
from shinshop_api.services.commerce.medusa import (
    MEDUSA_ORDER_PLACED,
    MEDUSA_SIGNATURE_HEADER,
    MEDUSA_SOURCE,
    OrderSource,
    medusa_event,
)
from shinshop_api.services.commerce.snipcart import (
    SNIPCART_SIGNATURE_HEADER,
    SNIPCART_SOURCE,
    snipcart_event_from_payload,
)
from shinshop_api.services.notifications.dispatcher import NotificationConfigurationError
from shinshop_api.services.notifications.service import (
    CustomOrderNotificationService,
    PipelineOutcome,
    PipelineResult,
)
from shinshop_api.services.notifications.signatures import verify_webhook_signature

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

_NON_POST_METHODS = ["GET", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def _method_not_allowed() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content={"error": "Method not allowed"},
        headers={"Allow": "POST"},
    )


def _unauthorized() -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"error": "Unauthorized"})


def _internal_error(exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "message": str(exc)},
    )


def _decode_json(body: bytes) -> Any:
    return json.loads(body.decode("utf-8"))


def _signature_valid(
    body: bytes,
    signature: str | None,
    *,
    secret: str | None,
    secret_setting: str,
    allow_unsigned: bool,
    source: str,
) -> bool:
    if not secret:
        if not allow_unsigned:
            logger.error("Webhook secret not configured; rejecting request", setting=secret_setting, source=source)
            return False
        logger.warning("Webhook secret not configured; accepting unsigned request", setting=secret_setting, source=source)
    return verify_webhook_signature(body, signature, secret)


def _outcome_response(result: PipelineResult) -> JSONResponse:
    if result.outcome is PipelineOutcome.NOT_PROCESSED:
        return JSONResponse(content={"message": "Event not processed"})
    if result.outcome is PipelineOutcome.NO_CUSTOMIZED_ITEMS:
        return JSONResponse(content={"message": "No customized items found"})
    return JSONResponse(content={"message": "Custom order notification sent successfully", "orderId": result.order_id})


@router.post("/snipcart")
async def snipcart_webhook(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    service: CustomOrderNotificationService = Depends(get_notification_service),
) -> JSONResponse:
    """Notify the shop when a completed storefront order contains customized items."""

    body = await request.body()
    try:
        payload = _decode_json(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.error("Malformed webhook payload", source=SNIPCART_SOURCE, error=str(exc))
        return _internal_error(exc)

    if not _signature_valid(
        body,
        request.headers.get(SNIPCART_SIGNATURE_HEADER),
        secret=settings.snipcart_webhook_secret,
        secret_setting="SNIPCART_WEBHOOK_SECRET",
        allow_unsigned=settings.allow_unsigned_webhooks,
        source=SNIPCART_SOURCE,
    ):
        logger.error("Invalid webhook signature", source=SNIPCART_SOURCE)
        return _unauthorized()

    try:
        event = snipcart_event_from_payload(payload)
        result = await service.process(event)
    except Exception as exc:
        logger.exception("Error processing webhook", source=SNIPCART_SOURCE)
        return _internal_error(exc)

    return _outcome_response(result)


@router.api_route("/snipcart", methods=_NON_POST_METHODS, include_in_schema=False)
async def snipcart_webhook_method_not_allowed() -> JSONResponse:
    return _method_not_allowed()


@router.post("/order-notifications")
async def order_notifications_webhook(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    service: CustomOrderNotificationService = Depends(get_notification_service),
    order_source: OrderSource | None = Depends(get_order_source),
) -> JSONResponse:
    """Notify the shop when a placed commerce-backend order contains customized items."""

    body = await request.body()
    try:
        payload = _decode_json(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.error("Malformed webhook payload", source=MEDUSA_SOURCE, error=str(exc))
        return _internal_error(exc)

    if not _signature_valid(
        body,
        request.headers.get(MEDUSA_SIGNATURE_HEADER),
        secret=settings.medusa_webhook_secret,
        secret_setting="MEDUSA_WEBHOOK_SECRET",
        allow_unsigned=settings.allow_unsigned_webhooks,
        source=MEDUSA_SOURCE,
    ):
        logger.error("Invalid webhook signature", source=MEDUSA_SOURCE)
        return _unauthorized()

    try:
        envelope = MedusaWebhookEnvelope.model_validate(payload)
        if envelope.event != MEDUSA_ORDER_PLACED:
            result = await service.process(medusa_event(envelope.event, None))
        else:
            if envelope.data is None:
                raise ValueError("order.placed event without an order id")
            if order_source is None:
                raise NotificationConfigurationError("MEDUSA_BACKEND_URL environment variable is required")
            order = await order_source.fetch_order(envelope.data.id)
            event = medusa_event(envelope.event, order, marker=settings.custom_item_marker)
            result = await service.process(event)
    except Exception as exc:
        logger.exception("Error processing order notification webhook", source=MEDUSA_SOURCE)
        return _internal_error(exc)

    return _outcome_response(result)


@router.api_route("/order-notifications", methods=_NON_POST_METHODS, include_in_schema=False)
async def order_notifications_method_not_allowed() -> JSONResponse:
    return _method_not_allowed()

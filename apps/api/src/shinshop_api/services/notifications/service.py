"""Custom-order notification pipeline shared by every trigger."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from loguru import logger

from shinshop_api.core.settings import Settings
from shinshop_api.domain.orders import CustomizedItem, OrderEvent
from shinshop_api.observability.tracing import get_tracer

from .attachments import MAX_IMAGE_BYTES, prepare_attachments
from .backend import EmailAttachment, EmailBackend
from .classifier import DEFAULT_CUSTOM_MARKER, select_customized_items
from .dispatcher import CustomOrderDispatcher, DispatchResult
from .templates import DEFAULT_SHOP_NAME, render_custom_order_notification

_tracer = get_tracer(__name__)


class PipelineOutcome(str, Enum):
    NOT_PROCESSED = "not_processed"
    NO_CUSTOMIZED_ITEMS = "no_customized_items"
    SENT = "sent"


@dataclass
class PipelineResult:
    outcome: PipelineOutcome
    order_id: str | None = None
    customized_items: list[CustomizedItem] = field(default_factory=list)
    attachments: list[EmailAttachment] = field(default_factory=list)
    dispatch: DispatchResult | None = None

    @property
    def sent(self) -> bool:
        return self.outcome is PipelineOutcome.SENT


class CustomOrderNotificationService:
    """Classify an order event and notify the shop about customized items.

    Non-completed events and orders without customized items are no-ops.
    Otherwise exactly one message is dispatched; rendering and attachment
    preparation never talk to the transport.
    """

    def __init__(
        self,
        dispatcher: CustomOrderDispatcher,
        *,
        shop_name: str = DEFAULT_SHOP_NAME,
        custom_marker: str = DEFAULT_CUSTOM_MARKER,
        max_image_bytes: int = MAX_IMAGE_BYTES,
    ) -> None:
        self._dispatcher = dispatcher
        self._shop_name = shop_name
        self._custom_marker = custom_marker
        self._max_image_bytes = max_image_bytes

    @classmethod
    def from_settings(cls, settings: Settings, backend: EmailBackend) -> "CustomOrderNotificationService":
        return cls(
            CustomOrderDispatcher.from_settings(settings, backend),
            shop_name=settings.shop_name,
            custom_marker=settings.custom_item_marker,
            max_image_bytes=settings.max_image_bytes,
        )

    @property
    def dispatcher(self) -> CustomOrderDispatcher:
        return self._dispatcher

    async def process(self, event: OrderEvent, *, generated_at: datetime | None = None) -> PipelineResult:
        if not event.is_order_completed or event.order is None:
            logger.info("Order event not processed", event_name=event.event_name, source=event.source)
            return PipelineResult(outcome=PipelineOutcome.NOT_PROCESSED)

        order = event.order
        with _tracer.start_as_current_span("custom_order.classify") as span:
            span.set_attribute("order.id", order.order_id)
            span.set_attribute("order.item_count", len(order.items))
            customized = select_customized_items(order.items, marker=self._custom_marker)
            span.set_attribute("order.customized_item_count", len(customized))

        if not customized:
            logger.info("No customized items found", order_id=order.order_id, source=event.source)
            return PipelineResult(outcome=PipelineOutcome.NO_CUSTOMIZED_ITEMS, order_id=order.order_id)

        logger.info(
            "Processing customized order",
            order_id=order.order_id,
            source=event.source,
            customized_item_count=len(customized),
        )

        rendered = render_custom_order_notification(
            order,
            customized,
            shop_name=self._shop_name,
            generated_at=generated_at,
        )

        with _tracer.start_as_current_span("custom_order.prepare_attachments") as span:
            attachments = await prepare_attachments(order, customized, max_image_bytes=self._max_image_bytes)
            span.set_attribute("notification.attachment_count", len(attachments))

        with _tracer.start_as_current_span("custom_order.dispatch") as span:
            span.set_attribute("order.id", order.order_id)
            dispatch = await self._dispatcher.dispatch(order.order_id, rendered, attachments)
            span.set_attribute("notification.message_id", dispatch.message_id)

        return PipelineResult(
            outcome=PipelineOutcome.SENT,
            order_id=order.order_id,
            customized_items=customized,
            attachments=attachments,
            dispatch=dispatch,
        )


__all__ = ["CustomOrderNotificationService", "PipelineOutcome", "PipelineResult"]

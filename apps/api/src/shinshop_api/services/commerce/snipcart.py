"""Translate storefront (Snipcart) webhook payloads into canonical order events."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from shinshop_api.domain.orders import Address, LineItem, Order, OrderEvent, OrderEventType
from shinshop_api.schemas.webhooks import (
    SnipcartAddress,
    SnipcartItem,
    SnipcartOrder,
    SnipcartWebhookEnvelope,
)

SNIPCART_SOURCE = "snipcart"
SNIPCART_ORDER_COMPLETED = "order.completed"
SNIPCART_SIGNATURE_HEADER = "x-snipcart-requesttoken"
DEFAULT_ITEM_CURRENCY = "CZK"


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None


def _address(raw: SnipcartAddress | None) -> Address | None:
    if raw is None:
        return None
    return Address(
        full_name=raw.full_name,
        address1=raw.address1,
        address2=raw.address2,
        city=raw.city,
        province=raw.province,
        postal_code=raw.postal_code,
        country=raw.country,
        phone=raw.phone_number,
    )


def _custom_field_source(item: SnipcartItem) -> Mapping[str, Any]:
    if isinstance(item.custom_fields, dict):
        return dict(item.custom_fields)
    # Array form: keep the first occurrence of each name.
    source: dict[str, Any] = {}
    for custom_field in item.custom_fields:
        source.setdefault(custom_field.name, custom_field.value)
    return source


def _line_item(item: SnipcartItem) -> LineItem:
    return LineItem(
        id=item.id,
        name=item.name,
        quantity=item.quantity,
        total_price=item.total_price,
        currency=item.currency or DEFAULT_ITEM_CURRENCY,
        custom_field_sources=[_custom_field_source(item)],
        source_id=item.id,
    )


def _customer_name(order: SnipcartOrder) -> str:
    if order.billing_address and order.billing_address.full_name and order.billing_address.full_name.strip():
        return order.billing_address.full_name.strip()
    return order.email or "Customer"


def order_from_snipcart(payload: SnipcartOrder) -> Order:
    return Order(
        order_id=payload.token,
        email=payload.email,
        customer_name=_customer_name(payload),
        grand_total=payload.final_grand_total,
        currency=payload.currency,
        items=[_line_item(item) for item in payload.items],
        billing_address=_address(payload.billing_address),
        shipping_address=_address(payload.shipping_address),
        payment_method=payload.payment_method or "Not specified",
        created_at=parse_timestamp(payload.creation_date),
        created_at_raw=payload.creation_date,
    )


def snipcart_event_from_payload(body: Mapping[str, Any]) -> OrderEvent:
    """Build an order event from a decoded webhook body.

    The order content is only validated for completed orders; other events
    are returned without an order. Raises pydantic `ValidationError` when the
    body does not match the storefront schema.
    """

    envelope = SnipcartWebhookEnvelope.model_validate(body)
    if envelope.event_name != SNIPCART_ORDER_COMPLETED:
        return OrderEvent(event_name=envelope.event_name, event_type=OrderEventType.OTHER, source=SNIPCART_SOURCE)

    order = SnipcartOrder.model_validate(envelope.content or {})
    return OrderEvent(
        event_name=envelope.event_name,
        event_type=OrderEventType.ORDER_COMPLETED,
        source=SNIPCART_SOURCE,
        order=order_from_snipcart(order),
    )


__all__ = [
    "DEFAULT_ITEM_CURRENCY",
    "SNIPCART_ORDER_COMPLETED",
    "SNIPCART_SIGNATURE_HEADER",
    "SNIPCART_SOURCE",
    "order_from_snipcart",
    "parse_timestamp",
    "snipcart_event_from_payload",
]

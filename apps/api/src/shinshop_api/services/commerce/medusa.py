"""Commerce backend (Medusa) order lookup, translation and event subscriber."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping, Protocol

import httpx
from loguru import logger
from pydantic import ValidationError

from shinshop_api.core.settings import Settings
from shinshop_api.domain.orders import Address, LineItem, Order, OrderEvent, OrderEventType
from shinshop_api.schemas.webhooks import MedusaAddress, MedusaLineItem, MedusaOrder
from shinshop_api.services.notifications.classifier import DEFAULT_CUSTOM_MARKER
from shinshop_api.services.notifications.service import CustomOrderNotificationService, PipelineResult

from .snipcart import DEFAULT_ITEM_CURRENCY, parse_timestamp

MEDUSA_SOURCE = "medusa"
MEDUSA_ORDER_PLACED = "order.placed"
MEDUSA_SIGNATURE_HEADER = "x-medusa-signature"

ORDER_RELATIONS: tuple[str, ...] = (
    "items",
    "items.variant",
    "items.variant.product",
    "customer",
    "billing_address",
    "shipping_address",
    "payments",
    "region",
)

PAYMENT_PROVIDER_NAMES = {
    "mollie": "Mollie",
    "stripe": "Stripe",
    "manual": "Manual Payment",
    "paypal": "PayPal",
}

_MINOR_UNITS = Decimal("100")
_CENTS = Decimal("0.01")


class OrderLookupError(RuntimeError):
    """Raised when an order cannot be fetched from the commerce backend."""


class OrderSource(Protocol):
    async def fetch_order(self, order_id: str) -> MedusaOrder:
        ...


class MedusaOrderClient:
    """Fetch expanded orders from the Medusa admin API."""

    def __init__(
        self,
        *,
        base_url: str,
        api_token: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_token = api_token
        self._client = http_client
        self._timeout = timeout_seconds

    async def fetch_order(self, order_id: str) -> MedusaOrder:
        url = f"{self._base_url}/admin/orders/{order_id}"
        headers = {"Accept": "application/json"}
        if self._api_token:
            headers["Authorization"] = f"Bearer {self._api_token}"
        params = {"expand": ",".join(ORDER_RELATIONS)}

        client = self._client or httpx.AsyncClient(timeout=self._timeout)
        owns_client = self._client is None
        try:
            response = await client.get(url, headers=headers, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise OrderLookupError(
                f"Commerce backend returned {exc.response.status_code} for order {order_id}"
            ) from exc
        except httpx.RequestError as exc:
            raise OrderLookupError(f"Commerce backend unreachable: {exc}") from exc
        except ValueError as exc:
            raise OrderLookupError(f"Commerce backend returned invalid JSON for order {order_id}") from exc
        finally:
            if owns_client:
                await client.aclose()

        raw_order = payload.get("order") if isinstance(payload, dict) else None
        if not isinstance(raw_order, dict):
            raise OrderLookupError(f"Order {order_id} missing from commerce backend response")
        try:
            return MedusaOrder.model_validate(raw_order)
        except ValidationError as exc:
            raise OrderLookupError(f"Order {order_id} has an unexpected shape: {exc}") from exc


def build_order_source(
    settings: Settings, *, http_client: httpx.AsyncClient | None = None
) -> MedusaOrderClient | None:
    if not settings.medusa_backend_url:
        return None
    return MedusaOrderClient(
        base_url=settings.medusa_backend_url,
        api_token=settings.medusa_admin_api_token,
        http_client=http_client,
    )


def from_minor_units(amount: int | None) -> Decimal:
    return (Decimal(amount or 0) / _MINOR_UNITS).quantize(_CENTS)


def _full_name(first: str | None, last: str | None) -> str | None:
    if first and last:
        return f"{first} {last}"
    return None


def _address(raw: MedusaAddress | None) -> Address | None:
    if raw is None:
        return None
    full_name = " ".join(part for part in (raw.first_name, raw.last_name) if part) or None
    return Address(
        full_name=full_name,
        address1=raw.address_1,
        address2=raw.address_2,
        city=raw.city,
        province=raw.province,
        postal_code=raw.postal_code,
        country=raw.country_code.upper() if raw.country_code else None,
        phone=raw.phone,
    )


def customer_name(order: MedusaOrder) -> str:
    if order.customer:
        name = _full_name(order.customer.first_name, order.customer.last_name)
        if name:
            return name
    if order.billing_address:
        name = _full_name(order.billing_address.first_name, order.billing_address.last_name)
        if name:
            return name
    return order.email or "Customer"


def payment_method(order: MedusaOrder) -> str:
    if not order.payments or not order.payments[0].provider_id:
        return "Not specified"
    provider = order.payments[0].provider_id
    return PAYMENT_PROVIDER_NAMES.get(provider, provider)


def is_customizable_product(item: MedusaLineItem) -> bool:
    product = item.variant.product if item.variant else None
    metadata = product.metadata if product else None
    return bool(metadata) and metadata.get("customizable") is True


def _item_currency(item: MedusaLineItem, order: MedusaOrder) -> str:
    product = item.variant.product if item.variant else None
    if product and product.region and product.region.currency_code:
        return product.region.currency_code.upper()
    if order.region and order.region.currency_code:
        return order.region.currency_code.upper()
    return DEFAULT_ITEM_CURRENCY


def _item_total(item: MedusaLineItem) -> int:
    if item.total is not None:
        return item.total
    return (item.unit_price or 0) * item.quantity


def _line_item(item: MedusaLineItem, order: MedusaOrder, *, marker: str) -> LineItem:
    sources: list[Mapping[str, Any]] = []
    if item.metadata:
        sources.append(item.metadata)
    if item.variant and item.variant.metadata:
        sources.append(item.variant.metadata)

    classification_id = item.id
    if is_customizable_product(item) and marker not in item.id:
        product = item.variant.product if item.variant else None
        classification_id = f"{item.id}{marker}{(product.id if product and product.id else 'product')}"

    return LineItem(
        id=classification_id,
        name=item.title,
        quantity=item.quantity,
        total_price=from_minor_units(_item_total(item)),
        currency=_item_currency(item, order),
        custom_field_sources=sources,
        source_id=item.id,
    )


def order_from_medusa(order: MedusaOrder, *, marker: str = DEFAULT_CUSTOM_MARKER) -> Order:
    order_id = str(order.display_id) if order.display_id is not None else order.id
    return Order(
        order_id=order_id,
        email=order.email or "",
        customer_name=customer_name(order),
        grand_total=from_minor_units(order.total),
        currency=order.currency_code,
        items=[_line_item(item, order, marker=marker) for item in order.items],
        billing_address=_address(order.billing_address),
        shipping_address=_address(order.shipping_address),
        payment_method=payment_method(order),
        created_at=parse_timestamp(order.created_at),
        created_at_raw=order.created_at,
    )


def medusa_event(event_name: str, order: MedusaOrder | None, *, marker: str = DEFAULT_CUSTOM_MARKER) -> OrderEvent:
    if event_name != MEDUSA_ORDER_PLACED or order is None:
        return OrderEvent(event_name=event_name, event_type=OrderEventType.OTHER, source=MEDUSA_SOURCE)
    return OrderEvent(
        event_name=event_name,
        event_type=OrderEventType.ORDER_COMPLETED,
        source=MEDUSA_SOURCE,
        order=order_from_medusa(order, marker=marker),
    )


class OrderPlacedSubscriber:
    """Event-bus handler for `order.placed`; failures never reach the order flow."""

    def __init__(
        self,
        order_source: OrderSource,
        service: CustomOrderNotificationService,
        *,
        marker: str = DEFAULT_CUSTOM_MARKER,
    ) -> None:
        self._order_source = order_source
        self._service = service
        self._marker = marker

    async def handle_order_placed(self, data: Mapping[str, Any]) -> PipelineResult | None:
        order_id = data.get("id") if isinstance(data, Mapping) else None
        try:
            if not order_id:
                raise OrderLookupError("order.placed event without an order id")
            logger.info("Processing order notification", order_id=order_id, source=MEDUSA_SOURCE)
            order = await self._order_source.fetch_order(str(order_id))
            return await self._service.process(medusa_event(MEDUSA_ORDER_PLACED, order, marker=self._marker))
        except Exception:
            logger.exception("Failed to send order notification", order_id=order_id, source=MEDUSA_SOURCE)
            return None


__all__ = [
    "MEDUSA_ORDER_PLACED",
    "MEDUSA_SIGNATURE_HEADER",
    "MEDUSA_SOURCE",
    "MedusaOrderClient",
    "OrderLookupError",
    "OrderPlacedSubscriber",
    "OrderSource",
    "build_order_source",
    "customer_name",
    "from_minor_units",
    "is_customizable_product",
    "medusa_event",
    "order_from_medusa",
    "payment_method",
]

"""Canonical order model shared by every notification trigger."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, Mapping

NOT_PROVIDED = "Not provided"
NOT_SPECIFIED = "Not specified"
DISPLAY_VALUE_LIMIT = 100
TRUNCATION_MARKER = "...[truncated]"


class OrderEventType(str, Enum):
    ORDER_COMPLETED = "order_completed"
    OTHER = "other"


def format_amount(amount: Decimal, currency: str) -> str:
    return f"{amount:.2f} {currency.upper()}"


def truncate_for_display(value: str, limit: int = DISPLAY_VALUE_LIMIT) -> str:
    """Shorten long values (raw base64 blobs) for human-readable output."""

    if len(value) <= limit:
        return value
    return f"{value[:limit]}{TRUNCATION_MARKER}"


@dataclass(slots=True)
class Address:
    full_name: str | None = None
    address1: str | None = None
    address2: str | None = None
    city: str | None = None
    province: str | None = None
    postal_code: str | None = None
    country: str | None = None
    phone: str | None = None

    def format(self) -> str:
        parts = [
            self.address1,
            self.address2,
            self.city,
            self.province,
            self.postal_code,
            self.country,
        ]
        rendered = ", ".join(part.strip() for part in parts if part and part.strip())
        return rendered or NOT_PROVIDED


@dataclass(slots=True)
class LineItem:
    """A purchased entry with its raw custom-field sources.

    `custom_field_sources` is ordered by priority; each source is a plain
    mapping of raw field name to value, already flattened by the adapter.
    """

    id: str
    name: str
    quantity: int
    total_price: Decimal
    currency: str
    custom_field_sources: list[Mapping[str, Any]] = field(default_factory=list)
    source_id: str | None = None

    @property
    def price_label(self) -> str:
        return format_amount(self.total_price, self.currency)


@dataclass(slots=True)
class Order:
    order_id: str
    email: str
    customer_name: str
    grand_total: Decimal
    currency: str
    items: list[LineItem] = field(default_factory=list)
    billing_address: Address | None = None
    shipping_address: Address | None = None
    payment_method: str = NOT_SPECIFIED
    created_at: datetime | None = None
    created_at_raw: str | None = None

    @property
    def customer_phone(self) -> str:
        if self.billing_address and self.billing_address.phone:
            return self.billing_address.phone
        return NOT_PROVIDED

    @property
    def billing_address_label(self) -> str:
        return self.billing_address.format() if self.billing_address else NOT_PROVIDED

    @property
    def shipping_address_label(self) -> str | None:
        """Shipping address, only when it differs from the billing address."""

        if self.shipping_address is None:
            return None
        rendered = self.shipping_address.format()
        if rendered == NOT_PROVIDED or rendered == self.billing_address_label:
            return None
        return rendered

    @property
    def total_label(self) -> str:
        return format_amount(self.grand_total, self.currency)

    @property
    def date_label(self) -> str:
        if self.created_at is not None:
            return self.created_at.strftime("%d %b %Y %H:%M %Z").strip()
        return self.created_at_raw or NOT_PROVIDED


@dataclass(slots=True)
class OrderEvent:
    event_name: str
    event_type: OrderEventType
    source: str
    order: Order | None = None

    @property
    def is_order_completed(self) -> bool:
        return self.event_type is OrderEventType.ORDER_COMPLETED


@dataclass(slots=True)
class CustomizationSet:
    """Ordered display label -> value mapping for one line item."""

    fields: dict[str, str] = field(default_factory=dict)

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, label: object) -> bool:
        return label in self.fields

    def get(self, label: str) -> str | None:
        return self.fields.get(label)

    def items(self) -> list[tuple[str, str]]:
        return list(self.fields.items())

    def display_items(self, limit: int = DISPLAY_VALUE_LIMIT) -> list[tuple[str, str]]:
        return [(label, truncate_for_display(value, limit)) for label, value in self.fields.items()]


@dataclass(slots=True)
class CustomizedItem:
    position: int
    item: LineItem
    customizations: CustomizationSet

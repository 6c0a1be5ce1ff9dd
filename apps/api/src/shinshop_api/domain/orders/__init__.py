from .models import (
    DISPLAY_VALUE_LIMIT,
    NOT_PROVIDED,
    NOT_SPECIFIED,
    TRUNCATION_MARKER,
    Address,
    CustomizationSet,
    CustomizedItem,
    LineItem,
    Order,
    OrderEvent,
    OrderEventType,
    format_amount,
    truncate_for_display,
)

__all__ = [
    "DISPLAY_VALUE_LIMIT",
    "NOT_PROVIDED",
    "NOT_SPECIFIED",
    "TRUNCATION_MARKER",
    "Address",
    "CustomizationSet",
    "CustomizedItem",
    "LineItem",
    "Order",
    "OrderEvent",
    "OrderEventType",
    "format_amount",
    "truncate_for_display",
]

"""Notification templates for custom-order alerts sent to the shop."""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence

from shinshop_api.domain.orders import CustomizedItem, Order

DEFAULT_SHOP_NAME = "The Shin Shop"

NEXT_STEPS: tuple[str, ...] = (
    "Review all customization details carefully",
    "Contact customer if clarification is needed",
    "Begin production process",
    "Send production updates to customer",
)

GENERATED_AT_PREFIX = "Generated:"

_COLOUR_TOKEN = re.compile(r"#(?:[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})|[A-Za-z]+")


@dataclass
class RenderedTemplate:
    subject: str
    text_body: str
    html_body: str


def custom_order_subject(order_id: str) -> str:
    return f"New Custom Shin Pad Order - {order_id}"


def _format_generated_at(value: datetime | None) -> str:
    moment = value or datetime.now(timezone.utc)
    return moment.strftime("%d %b %Y %H:%M:%S %Z").strip()


def _escape(value: object) -> str:
    return html.escape(str(value), quote=True)


def _build_items_text(items: Sequence[CustomizedItem]) -> list[str]:
    lines: list[str] = []
    for customized in items:
        item = customized.item
        lines.extend(
            [
                "",
                f"{customized.position}. {item.name}",
                f"   Quantity: {item.quantity}",
                f"   Price: {item.price_label}",
            ]
        )
        display = customized.customizations.display_items()
        if display:
            lines.append("   Customization Specifications:")
            lines.extend(f"   - {label}: {value}" for label, value in display)
        else:
            lines.append("   No customization fields provided.")
    return lines


def _build_customization_html(label: str, value: str) -> str:
    lowered = label.lower()
    swatch = ""
    colour = value.strip()
    if ("color" in lowered or "colour" in lowered) and _COLOUR_TOKEN.fullmatch(colour):
        swatch = (
            f'<span class="color-preview" style="display:inline-block;width:14px;height:14px;'
            f'border:1px solid #d1d5db;background-color:{colour}"></span> '
        )
    indicator = ' <span class="image-indicator">(Image attached)</span>' if "image" in lowered else ""
    return f"""
          <li><strong>{_escape(label)}:</strong> {swatch}{_escape(value)}{indicator}</li>"""


def _build_items_html(items: Sequence[CustomizedItem]) -> str:
    blocks: list[str] = []
    for customized in items:
        item = customized.item
        display = customized.customizations.display_items()
        if display:
            rows = "".join(_build_customization_html(label, value) for label, value in display)
            details = f"""
        <h4>Customization Specifications</h4>
        <ul>{rows}
        </ul>"""
        else:
            details = """
        <p>No customization fields provided.</p>"""
        blocks.append(
            f"""
      <div class="product-item">
        <h3>{customized.position}. {_escape(item.name)}</h3>
        <p>Qty: {item.quantity} &middot; {_escape(item.price_label)}</p>{details}
      </div>"""
        )
    return "".join(blocks)


def render_custom_order_notification(
    order: Order,
    items: Sequence[CustomizedItem],
    *,
    shop_name: str = DEFAULT_SHOP_NAME,
    generated_at: datetime | None = None,
) -> RenderedTemplate:
    """Render the shop-facing alert for an order containing customized items.

    Output depends only on the inputs, apart from the `Generated:` line.
    """

    subject = custom_order_subject(order.order_id)
    generated_label = _format_generated_at(generated_at)
    shipping = order.shipping_address_label

    text_lines = [
        f"{shop_name} - Custom Shin Pad Order Notification",
        "",
        f"Order ID: {order.order_id}",
        f"Order Date: {order.date_label}",
        "",
        "CUSTOMER INFORMATION",
        f"Name: {order.customer_name}",
        f"Email: {order.email}",
        f"Phone: {order.customer_phone}",
        f"Billing Address: {order.billing_address_label}",
    ]
    if shipping:
        text_lines.append(f"Shipping Address: {shipping}")
    text_lines.extend(["", "CUSTOMIZATION DETAILS"])
    text_lines.extend(_build_items_text(items))
    text_lines.extend(
        [
            "",
            "ORDER SUMMARY",
            f"Payment Method: {order.payment_method}",
            f"Total Amount: {order.total_label}",
            "",
            "NEXT STEPS",
        ]
    )
    text_lines.extend(f"- {step}" for step in NEXT_STEPS)
    text_lines.extend(
        [
            "",
            f"This is an automated notification from your {shop_name} e-commerce system.",
            f"{GENERATED_AT_PREFIX} {generated_label}",
        ]
    )
    text_body = "\n".join(text_lines)

    shipping_html = (
        f"""
      <p><strong>Shipping Address:</strong> {_escape(shipping)}</p>"""
        if shipping
        else ""
    )
    next_steps_html = "".join(f"""
        <li>{_escape(step)}</li>""" for step in NEXT_STEPS)
    email = _escape(order.email)

    html_body = f"""<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8">
    <title>Custom Shin Pad Order - {_escape(order.order_id)}</title>
  </head>
  <body>
    <div class="header">
      <h1>{_escape(shop_name)}</h1>
      <p>Custom Shin Pad Order Notification</p>
      <p><strong>Order #{_escape(order.order_id)}</strong></p>
      <p>{_escape(order.date_label)}</p>
    </div>
    <div class="section customer-section">
      <h2>Customer Information</h2>
      <p><strong>Name:</strong> {_escape(order.customer_name)}</p>
      <p><strong>Email:</strong> <a href="mailto:{email}">{email}</a></p>
      <p><strong>Phone:</strong> {_escape(order.customer_phone)}</p>
      <p><strong>Billing Address:</strong> {_escape(order.billing_address_label)}</p>{shipping_html}
    </div>
    <div class="section customization-section">
      <h2>Customization Details</h2>{_build_items_html(items)}
    </div>
    <div class="section summary-section">
      <h2>Order Summary</h2>
      <p><strong>Payment Method:</strong> {_escape(order.payment_method)}</p>
      <p><strong>Total Amount:</strong> {_escape(order.total_label)}</p>
    </div>
    <div class="footer">
      <h3>Next Steps</h3>
      <ul>{next_steps_html}
      </ul>
      <p>This is an automated notification from your {_escape(shop_name)} e-commerce system.</p>
      <p><strong>{GENERATED_AT_PREFIX}</strong> {_escape(generated_label)}</p>
    </div>
  </body>
</html>"""

    return RenderedTemplate(subject=subject, text_body=text_body, html_body=html_body)


__all__ = [
    "DEFAULT_SHOP_NAME",
    "GENERATED_AT_PREFIX",
    "NEXT_STEPS",
    "RenderedTemplate",
    "custom_order_subject",
    "render_custom_order_notification",
]

"""Build email attachments for customized orders.

Each customized item with an uploaded image contributes one attachment:
the decoded image, or a text note explaining why the image is missing or
could not be used. An order summary text file is always appended last.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import os
import re
from typing import Sequence

from loguru import logger

from shinshop_api.domain.orders import CustomizedItem, Order

from .backend import EmailAttachment
from .customizations import UPLOADED_IMAGE_LABEL, find_image_payload

MAX_IMAGE_BYTES = 10 * 1024 * 1024

_DATA_URL = re.compile(r"^data:image/([^;]+);base64,(.+)$", re.IGNORECASE | re.DOTALL)
_WHITESPACE = re.compile(r"\s+")

_EXTENSIONS = {
    "jpeg": ".jpg",
    "jpg": ".jpg",
    "png": ".png",
    "gif": ".gif",
    "webp": ".webp",
    "bmp": ".bmp",
    "tiff": ".tiff",
}

_MAGIC_NUMBERS: tuple[tuple[bytes, str], ...] = (
    (b"\xff\xd8", "jpeg"),
    (b"\x89\x50", "png"),
    (b"\x47\x49", "gif"),
    (b"\x52\x49", "webp"),
    (b"\x42\x4d", "bmp"),
)


class ImageProcessingError(ValueError):
    """An uploaded image payload could not be turned into an attachment."""


def file_extension(image_type: str) -> str:
    return _EXTENSIONS.get(image_type.lower(), ".jpg")


def detect_image_type(data: bytes) -> str | None:
    """Sniff the image type from its leading magic number."""

    if len(data) < 4:
        return None
    for magic, image_type in _MAGIC_NUMBERS:
        if data.startswith(magic):
            return image_type
    return None


def _b64decode(payload: str) -> bytes:
    try:
        return base64.b64decode(_WHITESPACE.sub("", payload), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageProcessingError(f"Invalid base64 image data: {exc}") from exc


def attachment_filename(original_filename: str | None, extension: str, position: int) -> str:
    base = ""
    if original_filename:
        base = os.path.splitext(os.path.basename(original_filename.replace("\\", "/")))[0].strip()
    return f"{base or f'custom-image-{position}'}{extension}"


def decode_image_payload(
    payload: str,
    *,
    original_filename: str | None,
    position: int,
    max_bytes: int = MAX_IMAGE_BYTES,
) -> EmailAttachment:
    """Decode a data URL or raw base64 string into an image attachment."""

    if payload.lower().startswith("data:image/"):
        match = _DATA_URL.match(payload)
        if match is None:
            raise ImageProcessingError("Invalid data URL format")
        image_type = match.group(1).lower()
        data = _b64decode(match.group(2))
    else:
        data = _b64decode(payload)
        detected = detect_image_type(data)
        if detected is None:
            raise ImageProcessingError("Could not detect image type")
        image_type = detected

    if len(data) > max_bytes:
        raise ImageProcessingError(
            f"Image too large: {len(data) / 1024 / 1024:.2f}MB (max {max_bytes / 1024 / 1024:.0f}MB)"
        )

    return EmailAttachment(
        filename=attachment_filename(original_filename, file_extension(image_type), position),
        content_type=f"image/{image_type}",
        payload=data,
    )


def build_item_attachment(customized: CustomizedItem, *, max_bytes: int = MAX_IMAGE_BYTES) -> EmailAttachment | None:
    """Attachment for one customized item; None when it has no uploaded image."""

    uploaded = customized.customizations.get(UPLOADED_IMAGE_LABEL)
    if not uploaded:
        return None

    position = customized.position
    payload = find_image_payload(customized.customizations)
    if payload is None:
        return EmailAttachment.from_text(
            f"custom-image-{position}-info.txt",
            f"Customer uploaded image: {uploaded}\n"
            "Note: Image data not available in webhook payload. "
            "You may need to contact the customer for the image file.",
        )

    # The uploaded-image field may carry the payload itself rather than a file name.
    original_filename = None if payload == uploaded else uploaded
    try:
        return decode_image_payload(
            payload,
            original_filename=original_filename,
            position=position,
            max_bytes=max_bytes,
        )
    except ImageProcessingError as exc:
        logger.warning(
            "Custom image could not be attached",
            item_index=position,
            item_name=customized.item.name,
            reason=str(exc),
        )
        display_name = original_filename or f"custom-image-{position}"
        return EmailAttachment.from_text(
            f"custom-image-{position}-error.txt",
            f"Image attachment failed to process for item {position} ({customized.item.name}): {display_name}\n"
            f"Error: {exc}",
        )


def render_order_summary(order: Order, items: Sequence[CustomizedItem]) -> str:
    lines = [
        "CUSTOM SHIN PAD ORDER SUMMARY",
        "============================",
        "",
        f"Order ID: {order.order_id}",
        f"Date: {order.date_label}",
        f"Customer: {order.customer_name}",
        f"Email: {order.email}",
        "",
        "CUSTOMIZATION DETAILS:",
        "---------------------",
    ]
    for customized in items:
        item = customized.item
        lines.extend(
            [
                "",
                f"{customized.position}. {item.name} (Qty: {item.quantity})",
                f"   Price: {item.price_label}",
                "   Customizations:",
            ]
        )
        for label, value in customized.customizations.display_items():
            lines.append(f"     - {label}: {value}")
    lines.extend(
        [
            "",
            f"Total: {order.total_label}",
            f"Payment Method: {order.payment_method}",
        ]
    )
    return "\n".join(lines) + "\n"


def build_order_summary_attachment(order: Order, items: Sequence[CustomizedItem]) -> EmailAttachment:
    return EmailAttachment.from_text(
        f"order-{_safe_filename_part(order.order_id)}-summary.txt",
        render_order_summary(order, items),
    )


async def prepare_attachments(
    order: Order,
    items: Sequence[CustomizedItem],
    *,
    max_image_bytes: int = MAX_IMAGE_BYTES,
) -> list[EmailAttachment]:
    """Image (or note) attachments in item order, then the order summary.

    Never returns an empty list: an unexpected failure leaves an
    explanatory text file in place of whatever could not be prepared.
    """

    attachments: list[EmailAttachment] = []
    try:
        results = await asyncio.gather(
            *(asyncio.to_thread(build_item_attachment, customized, max_bytes=max_image_bytes) for customized in items)
        )
        attachments.extend(result for result in results if result is not None)
        attachments.append(build_order_summary_attachment(order, items))
    except Exception as exc:
        logger.exception("Failed to prepare notification attachments", order_id=order.order_id)
        attachments.append(
            EmailAttachment.from_text(
                f"attachment-error-{_safe_filename_part(order.order_id)}.txt",
                f"Error preparing attachments: {exc}\n\n"
                "Please contact the customer directly for any uploaded images.",
            )
        )
    else:
        logger.info(
            "Prepared notification attachments",
            order_id=order.order_id,
            attachment_count=len(attachments),
        )
    return attachments


def _safe_filename_part(value: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]+", "-", value).strip("-") or "order"


__all__ = [
    "ImageProcessingError",
    "MAX_IMAGE_BYTES",
    "attachment_filename",
    "build_item_attachment",
    "build_order_summary_attachment",
    "decode_image_payload",
    "detect_image_type",
    "file_extension",
    "prepare_attachments",
    "render_order_summary",
]

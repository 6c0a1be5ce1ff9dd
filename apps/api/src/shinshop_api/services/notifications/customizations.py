"""Normalize per-item custom fields into display-ready customization sets."""

from __future__ import annotations

import json
import re
from typing import Any, Iterable, Mapping

from shinshop_api.domain.orders import CustomizationSet, LineItem

UPLOADED_IMAGE_LABEL = "Uploaded Image"

# Field names the storefront has used for the uploaded image payload.
IMAGE_DATA_FIELD_CANDIDATES: tuple[str, ...] = (
    "Image Data",
    "Uploaded Image Data",
    "Custom Image",
    "Image Content",
    "Custom Image Data",
)

_INTERNAL_KEYS = frozenset({"customizable"})
_MISSING_VALUES = frozenset({"", "undefined"})
_LABEL_SEPARATORS = re.compile(r"[_\s]+")
_DATA_URL_PREFIX = re.compile(r"^data:image/(jpeg|jpg|png|gif|webp);base64,", re.IGNORECASE)
_RAW_BASE64 = re.compile(r"^[A-Za-z0-9+/]+=*$")
_RAW_BASE64_MIN_LENGTH = 1000


def to_display_label(key: str) -> str:
    """`left_shin_text` -> `Left Shin Text`; the rest of each word is kept as-is."""

    words = _LABEL_SEPARATORS.split(key.strip())
    return " ".join(word[:1].upper() + word[1:] for word in words if word)


def is_internal_key(key: str) -> bool:
    stripped = key.strip()
    return stripped.startswith("_") or stripped.lower() in _INTERNAL_KEYS


def clean_value(value: Any) -> str | None:
    """Return the value as display text, or None when it should be dropped."""

    if value is None:
        return None
    if isinstance(value, str):
        text = value
    elif isinstance(value, (dict, list, tuple)):
        text = json.dumps(value, default=str)
    else:
        text = str(value)
    if text.strip() in _MISSING_VALUES:
        return None
    return text


def normalize_custom_fields(sources: Iterable[Mapping[str, Any]]) -> CustomizationSet:
    """Merge custom-field sources in priority order.

    Labels are unique after normalization; the first non-empty value found
    for a label wins over any later source.
    """

    fields: dict[str, str] = {}
    for source in sources:
        for key, raw_value in source.items():
            if not isinstance(key, str) or is_internal_key(key):
                continue
            label = to_display_label(key)
            if not label or label in fields:
                continue
            value = clean_value(raw_value)
            if value is None:
                continue
            fields[label] = value
    return CustomizationSet(fields)


def normalize_line_item(item: LineItem) -> CustomizationSet:
    return normalize_custom_fields(item.custom_field_sources)


def has_uploaded_image(customizations: CustomizationSet) -> bool:
    return UPLOADED_IMAGE_LABEL in customizations


def is_base64_image(value: object) -> bool:
    """True for image data URLs and for long raw base64 strings."""

    if not isinstance(value, str):
        return False
    if _DATA_URL_PREFIX.match(value):
        return True
    return len(value) > _RAW_BASE64_MIN_LENGTH and _RAW_BASE64.match(value) is not None


def find_image_payload(customizations: CustomizationSet) -> str | None:
    """Locate the base64 image payload for an item, if the storefront sent one.

    Checks the known payload fields in order, then any field whose value
    looks like image data.
    """

    for label in IMAGE_DATA_FIELD_CANDIDATES:
        candidate = customizations.get(label)
        if candidate and is_base64_image(candidate):
            return candidate

    for _, value in customizations.items():
        if is_base64_image(value):
            return value
    return None


__all__ = [
    "IMAGE_DATA_FIELD_CANDIDATES",
    "UPLOADED_IMAGE_LABEL",
    "clean_value",
    "find_image_payload",
    "has_uploaded_image",
    "is_base64_image",
    "is_internal_key",
    "normalize_custom_fields",
    "normalize_line_item",
    "to_display_label",
]

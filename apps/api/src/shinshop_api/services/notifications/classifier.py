"""Pick the line items that need manual production."""

from __future__ import annotations

from typing import Iterable

from shinshop_api.domain.orders import CustomizedItem, LineItem

from .customizations import has_uploaded_image, normalize_line_item

DEFAULT_CUSTOM_MARKER = "-custom-"


def is_customized_item(item: LineItem, *, marker: str = DEFAULT_CUSTOM_MARKER) -> bool:
    """An item is customized if its id carries the marker or it has an uploaded image."""

    if marker and marker in item.id:
        return True
    return has_uploaded_image(normalize_line_item(item))


def select_customized_items(
    items: Iterable[LineItem],
    *,
    marker: str = DEFAULT_CUSTOM_MARKER,
) -> list[CustomizedItem]:
    """Return customized items in order, numbered from 1, with their customizations."""

    selected: list[CustomizedItem] = []
    for item in items:
        if not is_customized_item(item, marker=marker):
            continue
        selected.append(
            CustomizedItem(
                position=len(selected) + 1,
                item=item,
                customizations=normalize_line_item(item),
            )
        )
    return selected

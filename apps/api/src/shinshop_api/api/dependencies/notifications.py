"""Request-scoped access to collaborators stored on `app.state`."""

from __future__ import annotations

from fastapi import Request

from shinshop_api.core.settings import Settings
from shinshop_api.services.commerce.medusa import OrderSource
from shinshop_api.services.notifications.service import CustomOrderNotificationService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_notification_service(request: Request) -> CustomOrderNotificationService:
    return request.app.state.notification_service


def get_order_source(request: Request) -> OrderSource | None:
    return getattr(request.app.state, "order_source", None)

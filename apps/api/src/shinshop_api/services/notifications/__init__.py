"""Custom-order notification package."""

from .attachments import ImageProcessingError, prepare_attachments
from .backend import (
    EmailAttachment,
    EmailBackend,
    InMemoryEmailBackend,
    NotificationMessage,
    SMTPEmailBackend,
    build_email_backend,
)
from .classifier import is_customized_item, select_customized_items
from .dispatcher import CustomOrderDispatcher, DispatchResult, NotificationConfigurationError
from .service import CustomOrderNotificationService, PipelineOutcome, PipelineResult
from .signatures import compute_webhook_signature, verify_webhook_signature
from .templates import RenderedTemplate, render_custom_order_notification

__all__ = [
    "CustomOrderDispatcher",
    "CustomOrderNotificationService",
    "DispatchResult",
    "EmailAttachment",
    "EmailBackend",
    "ImageProcessingError",
    "InMemoryEmailBackend",
    "NotificationConfigurationError",
    "NotificationMessage",
    "PipelineOutcome",
    "PipelineResult",
    "RenderedTemplate",
    "SMTPEmailBackend",
    "build_email_backend",
    "compute_webhook_signature",
    "is_customized_item",
    "prepare_attachments",
    "render_custom_order_notification",
    "select_customized_items",
    "verify_webhook_signature",
]

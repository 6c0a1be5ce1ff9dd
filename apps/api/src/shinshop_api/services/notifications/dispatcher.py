"""Assemble the shop notification and hand it to the mail transport."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from loguru import logger

from shinshop_api.core.settings import Settings

from .backend import EmailAttachment, EmailBackend, NotificationMessage
from .templates import RenderedTemplate


class NotificationConfigurationError(RuntimeError):
    """Raised when required notification settings are missing."""


@dataclass(slots=True)
class DispatchResult:
    message_id: str
    recipient: str
    cc: str | None
    attachment_count: int


class CustomOrderDispatcher:
    """Send exactly one message per call; transport errors propagate unchanged."""

    def __init__(
        self,
        backend: EmailBackend,
        *,
        recipient: str | None,
        sender: str | None = None,
        cc: str | None = None,
    ) -> None:
        self._backend = backend
        self._recipient = recipient
        self._sender = sender
        self._cc = cc

    @classmethod
    def from_settings(cls, settings: Settings, backend: EmailBackend) -> "CustomOrderDispatcher":
        return cls(
            backend,
            recipient=settings.business_email,
            sender=settings.sender_email,
            cc=settings.business_cc_email,
        )

    @property
    def backend(self) -> EmailBackend:
        return self._backend

    def build_message(
        self,
        rendered: RenderedTemplate,
        attachments: Sequence[EmailAttachment],
    ) -> NotificationMessage:
        if not self._recipient:
            raise NotificationConfigurationError("BUSINESS_EMAIL environment variable is required")
        return NotificationMessage(
            sender=self._sender,
            recipient=self._recipient,
            cc=self._cc or None,
            subject=rendered.subject,
            text_body=rendered.text_body,
            html_body=rendered.html_body,
            attachments=list(attachments),
        )

    async def dispatch(
        self,
        order_id: str,
        rendered: RenderedTemplate,
        attachments: Sequence[EmailAttachment],
    ) -> DispatchResult:
        message = self.build_message(rendered, attachments)
        try:
            message_id = await self._backend.send_message(message)
        except Exception:
            logger.exception(
                "Failed to send custom order notification",
                order_id=order_id,
                recipient=message.recipient,
            )
            raise

        logger.info(
            "Custom order notification sent",
            order_id=order_id,
            recipient=message.recipient,
            cc=message.cc,
            message_id=message_id,
            attachment_count=len(message.attachments),
        )
        return DispatchResult(
            message_id=message_id,
            recipient=message.recipient,
            cc=message.cc,
            attachment_count=len(message.attachments),
        )


__all__ = ["CustomOrderDispatcher", "DispatchResult", "NotificationConfigurationError"]

"""Email transports for order notifications."""

from __future__ import annotations

import asyncio
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import make_msgid
from typing import List, Protocol, Sequence

from shinshop_api.core.settings import Settings

GMAIL_SMTP_HOST = "smtp.gmail.com"
GMAIL_SMTP_PORT = 587


@dataclass(slots=True)
class EmailAttachment:
    """Binary or text attachment payload for the notification email."""

    filename: str
    content_type: str
    payload: bytes

    @classmethod
    def from_text(cls, filename: str, text: str) -> "EmailAttachment":
        return cls(filename=filename, content_type="text/plain", payload=text.encode("utf-8"))

    @property
    def text(self) -> str:
        return self.payload.decode("utf-8", errors="replace")


@dataclass(slots=True)
class NotificationMessage:
    sender: str | None
    recipient: str
    subject: str
    text_body: str
    html_body: str
    cc: str | None = None
    attachments: list[EmailAttachment] = field(default_factory=list)


class EmailBackend(Protocol):
    """Transport accepting a fully assembled message and returning its id."""

    async def send_message(self, message: NotificationMessage) -> str:
        ...


def build_mime_message(message: NotificationMessage, *, message_id: str | None = None) -> EmailMessage:
    mime = EmailMessage()
    if message.sender:
        mime["From"] = message.sender
    mime["To"] = message.recipient
    if message.cc:
        mime["Cc"] = message.cc
    mime["Subject"] = message.subject
    mime["Message-ID"] = message_id or make_msgid()
    mime.set_content(message.text_body)
    if message.html_body:
        mime.add_alternative(message.html_body, subtype="html")
    _attach_files(mime, message.attachments)
    return mime


class SMTPEmailBackend:
    """SMTP transport; blocking smtplib calls run in a worker thread."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: str | None,
        password: str | None,
        use_ssl: bool = False,
        use_starttls: bool = True,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._use_ssl = use_ssl
        self._use_starttls = use_starttls and not use_ssl

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    async def send_message(self, message: NotificationMessage) -> str:
        message_id = make_msgid()
        mime = build_mime_message(message, message_id=message_id)
        await asyncio.to_thread(self._send, mime)
        return message_id

    def _send(self, message: EmailMessage) -> None:
        smtp: smtplib.SMTP
        if self._use_ssl:
            smtp = smtplib.SMTP_SSL(self._host, self._port)
        else:
            smtp = smtplib.SMTP(self._host, self._port)

        try:
            if self._use_starttls:
                smtp.starttls()
            if self._username and self._password:
                smtp.login(self._username, self._password)
            smtp.send_message(message)
        finally:
            smtp.quit()


@dataclass
class InMemoryEmailBackend:
    """Test backend storing outbound messages in memory."""

    sent_messages: List[EmailMessage]
    notifications: List[NotificationMessage]

    def __init__(self) -> None:
        self.sent_messages = []
        self.notifications = []

    async def send_message(self, message: NotificationMessage) -> str:
        message_id = make_msgid(domain="in-memory.local")
        self.sent_messages.append(build_mime_message(message, message_id=message_id))
        self.notifications.append(message)
        return message_id


def build_email_backend(settings: Settings) -> SMTPEmailBackend:
    """Create the transport selected by `email_provider`."""

    if settings.email_provider == "gmail":
        return SMTPEmailBackend(
            host=GMAIL_SMTP_HOST,
            port=GMAIL_SMTP_PORT,
            username=settings.gmail_user,
            password=settings.gmail_app_password,
        )
    return SMTPEmailBackend(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_user,
        password=settings.smtp_password,
        use_ssl=settings.smtp_secure,
    )


def _attach_files(message: EmailMessage, attachments: Sequence[EmailAttachment] | None) -> None:
    if not attachments:
        return
    for attachment in attachments:
        content_type = attachment.content_type or "application/octet-stream"
        if "/" in content_type:
            maintype, subtype = content_type.split("/", 1)
        else:
            maintype, subtype = "application", "octet-stream"
        message.add_attachment(
            attachment.payload,
            maintype=maintype,
            subtype=subtype,
            filename=attachment.filename,
        )

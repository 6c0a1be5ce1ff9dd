import smtplib

import pytest

from shinshop_api.services.notifications import (
    EmailAttachment,
    NotificationMessage,
    SMTPEmailBackend,
    build_email_backend,
)
from shinshop_api.services.notifications.backend import build_mime_message


class _FakeSMTP:
    instances: list["_FakeSMTP"] = []

    def __init__(self, host: str, port: int) -> None:
        self.host = host
        self.port = port
        self.calls: list[str] = []
        self.sent = []
        _FakeSMTP.instances.append(self)

    def starttls(self) -> None:
        self.calls.append("starttls")

    def login(self, username: str, password: str) -> None:
        self.calls.append(f"login:{username}")

    def send_message(self, message) -> None:
        self.calls.append("send")
        self.sent.append(message)

    def quit(self) -> None:
        self.calls.append("quit")


def _message() -> NotificationMessage:
    return NotificationMessage(
        sender="notifier@theshinshop.test",
        recipient="orders@theshinshop.test",
        cc="owner@theshinshop.test",
        subject="New Custom Shin Pad Order - SHIN-1001",
        text_body="Order ID: SHIN-1001",
        html_body="<p>Order ID: SHIN-1001</p>",
        attachments=[
            EmailAttachment(filename="logo.png", content_type="image/png", payload=b"\x89PNG\r\n\x1a\n"),
            EmailAttachment.from_text("order-SHIN-1001-summary.txt", "CUSTOM SHIN PAD ORDER SUMMARY"),
        ],
    )


def test_mime_message_carries_bodies_and_attachments():
    mime = build_mime_message(_message(), message_id="<abc@test>")

    assert mime["Subject"] == "New Custom Shin Pad Order - SHIN-1001"
    assert mime["Cc"] == "owner@theshinshop.test"
    assert mime["Message-ID"] == "<abc@test>"
    attachments = list(mime.iter_attachments())
    assert [part.get_filename() for part in attachments] == ["logo.png", "order-SHIN-1001-summary.txt"]
    assert attachments[0].get_content_type() == "image/png"
    assert attachments[0].get_content() == b"\x89PNG\r\n\x1a\n"
    body = mime.get_body(preferencelist=("plain",))
    assert "SHIN-1001" in body.get_content()


@pytest.mark.asyncio
async def test_smtp_backend_uses_starttls_and_login(monkeypatch):
    _FakeSMTP.instances = []
    monkeypatch.setattr(smtplib, "SMTP", _FakeSMTP)
    backend = SMTPEmailBackend(host="smtp.test", port=587, username="user", password="pass")

    message_id = await backend.send_message(_message())

    smtp = _FakeSMTP.instances[0]
    assert (smtp.host, smtp.port) == ("smtp.test", 587)
    assert smtp.calls == ["starttls", "login:user", "send", "quit"]
    assert smtp.sent[0]["Message-ID"] == message_id


@pytest.mark.asyncio
async def test_smtp_backend_quits_when_sending_fails(monkeypatch):
    class _FailingSMTP(_FakeSMTP):
        def send_message(self, message) -> None:
            raise smtplib.SMTPRecipientsRefused({})

    _FakeSMTP.instances = []
    monkeypatch.setattr(smtplib, "SMTP", _FailingSMTP)
    backend = SMTPEmailBackend(host="smtp.test", port=25, username=None, password=None)

    with pytest.raises(smtplib.SMTPRecipientsRefused):
        await backend.send_message(_message())

    assert _FakeSMTP.instances[0].calls == ["starttls", "quit"]


@pytest.mark.asyncio
async def test_smtp_backend_quits_when_starttls_fails(monkeypatch):
    class _NoTLSSMTP(_FakeSMTP):
        def starttls(self) -> None:
            raise smtplib.SMTPNotSupportedError("STARTTLS extension not supported by server.")

    _FakeSMTP.instances = []
    monkeypatch.setattr(smtplib, "SMTP", _NoTLSSMTP)
    backend = SMTPEmailBackend(host="smtp.test", port=587, username="user", password="pass")

    with pytest.raises(smtplib.SMTPNotSupportedError):
        await backend.send_message(_message())

    assert _FakeSMTP.instances[0].calls == ["quit"]


def test_gmail_provider_uses_gmail_preset(settings):
    configured = settings.model_copy(
        update={"email_provider": "gmail", "gmail_user": "shop@gmail.com", "gmail_app_password": "app-pass"}
    )

    backend = build_email_backend(configured)

    assert (backend.host, backend.port) == ("smtp.gmail.com", 587)


def test_smtp_provider_uses_configured_host(settings):
    configured = settings.model_copy(update={"smtp_host": "mail.theshinshop.test", "smtp_port": 465, "smtp_secure": True})

    backend = build_email_backend(configured)

    assert (backend.host, backend.port) == ("mail.theshinshop.test", 465)

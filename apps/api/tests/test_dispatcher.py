from unittest.mock import AsyncMock

import pytest

from shinshop_api.services.notifications import (
    CustomOrderDispatcher,
    EmailAttachment,
    InMemoryEmailBackend,
    NotificationConfigurationError,
    RenderedTemplate,
)

RENDERED = RenderedTemplate(
    subject="New Custom Shin Pad Order - SHIN-1001",
    text_body="Order ID: SHIN-1001",
    html_body="<p>Order ID: SHIN-1001</p>",
)
SUMMARY = EmailAttachment.from_text("order-SHIN-1001-summary.txt", "summary")


@pytest.mark.asyncio
async def test_dispatch_sends_exactly_one_message():
    backend = InMemoryEmailBackend()
    dispatcher = CustomOrderDispatcher(
        backend,
        recipient="orders@theshinshop.test",
        sender="notifier@theshinshop.test",
        cc="owner@theshinshop.test",
    )

    result = await dispatcher.dispatch("SHIN-1001", RENDERED, [SUMMARY])

    assert len(backend.notifications) == 1
    message = backend.notifications[0]
    assert message.recipient == "orders@theshinshop.test"
    assert message.cc == "owner@theshinshop.test"
    assert message.subject == RENDERED.subject
    assert message.attachments == [SUMMARY]
    assert result.attachment_count == 1
    assert result.message_id.endswith("@in-memory.local>")

    mime = backend.sent_messages[0]
    assert mime["To"] == "orders@theshinshop.test"
    assert mime["Cc"] == "owner@theshinshop.test"
    assert mime["From"] == "notifier@theshinshop.test"


@pytest.mark.asyncio
async def test_missing_recipient_fails_before_transport():
    backend = AsyncMock()
    dispatcher = CustomOrderDispatcher(backend, recipient=None)

    with pytest.raises(NotificationConfigurationError, match="BUSINESS_EMAIL"):
        await dispatcher.dispatch("SHIN-1001", RENDERED, [SUMMARY])

    backend.send_message.assert_not_awaited()


@pytest.mark.asyncio
async def test_cc_header_only_set_when_configured():
    backend = InMemoryEmailBackend()
    dispatcher = CustomOrderDispatcher(backend, recipient="orders@theshinshop.test", cc="")

    await dispatcher.dispatch("SHIN-1001", RENDERED, [SUMMARY])

    assert backend.notifications[0].cc is None
    assert backend.sent_messages[0]["Cc"] is None


@pytest.mark.asyncio
async def test_transport_errors_propagate_without_retry():
    backend = AsyncMock()
    backend.send_message.side_effect = ConnectionError("smtp down")
    dispatcher = CustomOrderDispatcher(backend, recipient="orders@theshinshop.test")

    with pytest.raises(ConnectionError, match="smtp down"):
        await dispatcher.dispatch("SHIN-1001", RENDERED, [SUMMARY])

    assert backend.send_message.await_count == 1


def test_dispatcher_reads_addresses_from_settings(settings):
    dispatcher = CustomOrderDispatcher.from_settings(settings, InMemoryEmailBackend())

    message = dispatcher.build_message(RENDERED, [SUMMARY])

    assert message.recipient == "orders@theshinshop.test"
    assert message.sender == "notifier@theshinshop.test"
    assert message.cc is None

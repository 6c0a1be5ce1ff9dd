import json
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


def _configure_path() -> None:
    src_path = Path(__file__).resolve().parents[1] / "src"
    if src_path.exists():
        sys.path.insert(0, str(src_path))


_configure_path()

from shinshop_api.app import create_app  # noqa: E402
from shinshop_api.core.settings import Settings  # noqa: E402
from shinshop_api.domain.orders import Address, LineItem, Order  # noqa: E402
from shinshop_api.services.notifications import (  # noqa: E402
    InMemoryEmailBackend,
    compute_webhook_signature,
)

PNG_DATA_URL = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChAI9jU77zgAAAABJRU5ErkJggg=="
)
SNIPCART_SECRET = "snipcart-test-secret"
MEDUSA_SECRET = "medusa-test-secret"


@pytest.fixture
def png_data_url() -> str:
    return PNG_DATA_URL


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="development",
        email_provider="smtp",
        smtp_user="notifier@theshinshop.test",
        business_email="orders@theshinshop.test",
        business_cc_email=None,
        snipcart_webhook_secret=SNIPCART_SECRET,
        medusa_webhook_secret=MEDUSA_SECRET,
        allow_unsigned_webhooks=False,
        medusa_backend_url=None,
        tracing_enabled=False,
    )


@pytest.fixture
def email_backend() -> InMemoryEmailBackend:
    return InMemoryEmailBackend()


@pytest.fixture
def order_source():
    return None


@pytest.fixture
def app(settings, email_backend, order_source):
    return create_app(settings, email_backend=email_backend, order_source=order_source)


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client


@pytest.fixture
def sign_body() -> Callable[[bytes, str], str]:
    return compute_webhook_signature


@pytest.fixture
def snipcart_payload() -> Callable[..., dict[str, Any]]:
    def _build(
        *,
        event_name: str = "order.completed",
        items: list[dict[str, Any]] | None = None,
        token: str = "order-token-123",
    ) -> dict[str, Any]:
        return {
            "eventName": event_name,
            "content": {
                "token": token,
                "creationDate": "2024-03-01T10:30:00Z",
                "email": "jana@example.com",
                "currency": "czk",
                "finalGrandTotal": 1290.0,
                "paymentMethod": "CreditCard",
                "billingAddress": {
                    "fullName": "Jana Novak",
                    "address1": "Main Street 1",
                    "city": "Prague",
                    "postalCode": "11000",
                    "country": "CZ",
                    "phoneNumber": "+420123456789",
                },
                "items": items
                if items is not None
                else [
                    {
                        "id": "shin-pad-custom-001",
                        "name": "Custom Shin Pad",
                        "quantity": 1,
                        "totalPrice": 1290.0,
                        "customFields": [
                            {"name": "Size", "value": "M"},
                            {"name": "Player Number", "value": "10"},
                        ],
                    }
                ],
            },
        }

    return _build


@pytest.fixture
def encode_json() -> Callable[[Any], bytes]:
    def _encode(payload: Any) -> bytes:
        return json.dumps(payload).encode("utf-8")

    return _encode


@pytest.fixture
def build_order() -> Callable[..., Order]:
    def _build(items: list[LineItem] | None = None, **overrides: Any) -> Order:
        values: dict[str, Any] = {
            "order_id": "SHIN-1001",
            "email": "jana@example.com",
            "customer_name": "Jana Novak",
            "grand_total": Decimal("1290.00"),
            "currency": "CZK",
            "items": items or [],
            "billing_address": Address(
                full_name="Jana Novak",
                address1="Main Street 1",
                city="Prague",
                postal_code="11000",
                country="CZ",
                phone="+420123456789",
            ),
            "payment_method": "Credit Card",
            "created_at_raw": "2024-03-01T10:30:00Z",
        }
        values.update(overrides)
        return Order(**values)

    return _build


@pytest.fixture
def build_item() -> Callable[..., LineItem]:
    def _build(item_id: str = "shin-pad-custom-001", fields: dict[str, Any] | None = None, **overrides: Any) -> LineItem:
        values: dict[str, Any] = {
            "id": item_id,
            "name": "Custom Shin Pad",
            "quantity": 1,
            "total_price": Decimal("1290.00"),
            "currency": "CZK",
            "custom_field_sources": [fields or {}],
        }
        values.update(overrides)
        return LineItem(**values)

    return _build

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SnipcartCustomField(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    value: Any = None


class SnipcartAddress(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    full_name: str | None = Field(None, alias="fullName")
    address1: str | None = None
    address2: str | None = None
    city: str | None = None
    province: str | None = None
    postal_code: str | None = Field(None, alias="postalCode")
    country: str | None = None
    phone_number: str | None = Field(None, alias="phoneNumber")


class SnipcartItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str = ""
    quantity: int = 1
    total_price: Decimal = Field(Decimal("0"), alias="totalPrice")
    currency: str | None = None
    custom_fields: list[SnipcartCustomField] | dict[str, Any] = Field(default_factory=list, alias="customFields")

    @field_validator("custom_fields", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class SnipcartOrder(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    token: str
    creation_date: str | None = Field(None, alias="creationDate")
    email: str = ""
    currency: str = ""
    final_grand_total: Decimal = Field(Decimal("0"), alias="finalGrandTotal")
    payment_method: str | None = Field(None, alias="paymentMethod")
    billing_address: SnipcartAddress | None = Field(None, alias="billingAddress")
    shipping_address: SnipcartAddress | None = Field(None, alias="shippingAddress")
    items: list[SnipcartItem] = Field(default_factory=list)


class SnipcartWebhookEnvelope(BaseModel):
    """Outer webhook body; `content` is only parsed for completed orders."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    event_name: str = Field("", alias="eventName")
    content: dict[str, Any] | None = None


class MedusaWebhookData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str


class MedusaWebhookEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    event: str = ""
    data: MedusaWebhookData | None = None


class MedusaAddress(BaseModel):
    model_config = ConfigDict(extra="ignore")

    first_name: str | None = None
    last_name: str | None = None
    address_1: str | None = None
    address_2: str | None = None
    city: str | None = None
    province: str | None = None
    postal_code: str | None = None
    country_code: str | None = None
    phone: str | None = None


class MedusaCustomer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None


class MedusaRegion(BaseModel):
    model_config = ConfigDict(extra="ignore")

    currency_code: str | None = None


class MedusaProduct(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    title: str | None = None
    metadata: dict[str, Any] | None = None
    region: MedusaRegion | None = None


class MedusaVariant(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    metadata: dict[str, Any] | None = None
    product: MedusaProduct | None = None


class MedusaLineItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    title: str = ""
    quantity: int = 1
    total: int | None = None
    unit_price: int | None = None
    metadata: dict[str, Any] | None = None
    variant: MedusaVariant | None = None


class MedusaPayment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    provider_id: str | None = None


class MedusaOrder(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    display_id: int | str | None = None
    email: str | None = None
    created_at: str | None = None
    currency_code: str = ""
    total: int = 0
    customer: MedusaCustomer | None = None
    billing_address: MedusaAddress | None = None
    shipping_address: MedusaAddress | None = None
    payments: list[MedusaPayment] = Field(default_factory=list)
    region: MedusaRegion | None = None
    items: list[MedusaLineItem] = Field(default_factory=list)

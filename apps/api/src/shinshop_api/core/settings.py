from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    environment: Literal["development", "staging", "production"] = "development"
    shop_name: str = "The Shin Shop"

    # Email transport
    email_provider: Literal["gmail", "smtp"] = "smtp"
    gmail_user: str | None = None
    gmail_app_password: str | None = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_secure: bool = False
    smtp_user: str | None = None
    smtp_password: str | None = None
    notification_sender_email: str | None = None

    # Business inbox
    business_email: str | None = None
    business_cc_email: str | None = None

    # Webhook security
    snipcart_webhook_secret: str | None = None
    medusa_webhook_secret: str | None = None
    allow_unsigned_webhooks: bool = False

    # Customized order detection
    custom_item_marker: str = "-custom-"
    max_image_bytes: int = 10 * 1024 * 1024

    # Commerce backend order lookup
    medusa_backend_url: str | None = None
    medusa_admin_api_token: str | None = None

    # Tracing
    tracing_enabled: bool = False
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None

    @field_validator(
        "gmail_user",
        "gmail_app_password",
        "smtp_user",
        "smtp_password",
        "notification_sender_email",
        "business_email",
        "business_cc_email",
        "snipcart_webhook_secret",
        "medusa_webhook_secret",
        "medusa_backend_url",
        "medusa_admin_api_token",
        "otel_exporter_otlp_endpoint",
        "otel_exporter_otlp_headers",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("email_provider", mode="before")
    @classmethod
    def _normalize_provider(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower() or "smtp"
        return value

    @field_validator("custom_item_marker")
    @classmethod
    def _require_marker(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("custom_item_marker must not be blank")
        return value

    @property
    def sender_email(self) -> str | None:
        """From address used for outgoing notifications."""

        if self.notification_sender_email:
            return self.notification_sender_email
        if self.email_provider == "gmail":
            return self.gmail_user or self.smtp_user
        return self.smtp_user or self.gmail_user


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]

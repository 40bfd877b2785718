"""
Payment-related settings using pydantic-settings v2 with nested env keys.

Kept apart from core.config.Settings so provider credentials live in one place.
"""
from __future__ import annotations

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator, model_validator


class PaymentTimeouts(BaseModel):
    connect: float = 5.0
    read: float = 15.0
    write: float = 15.0
    total: float = 30.0


class PesapalSettings(BaseModel):
    consumer_key: Optional[str] = None
    consumer_secret: Optional[str] = None
    api_url: str = "https://cybqa.pesapal.com/pesapalv3/api"
    currency: str = "KES"

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class PaymentSettings(BaseSettings):
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    pesapal: PesapalSettings = Field(default_factory=PesapalSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @model_validator(mode="after")
    def _validate_pesapal_credentials(self):
        missing = [
            name for name, value in (
                ("PESAPAL__CONSUMER_KEY", self.pesapal.consumer_key),
                ("PESAPAL__CONSUMER_SECRET", self.pesapal.consumer_secret),
            )
            if not value
        ]
        if missing:
            raise ValueError(
                f"Pesapal credentials are not configured: {', '.join(missing)}. "
                "Set them in the environment or .env"
            )
        return self


payment_settings = PaymentSettings()

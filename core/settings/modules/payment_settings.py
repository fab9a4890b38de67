from __future__ import annotations

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from core.settings.base import KasirBaseSettings


class PaymentSettings(KasirBaseSettings):
    """Business defaults for payment creation."""

    model_config = SettingsConfigDict(env_prefix="PAYMENT_")

    default_currency: str = Field(default="IDR", min_length=3, max_length=3)
    default_expiry_minutes: int = Field(default=60, gt=0)

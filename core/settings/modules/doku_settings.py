from __future__ import annotations

from typing import Literal

from pydantic_settings import SettingsConfigDict

from core.settings.base import KasirBaseSettings

_BASE_URLS = {
    "sandbox": "https://api-sandbox.doku.com",
    "production": "https://api.doku.com",
}


class DokuSettings(KasirBaseSettings):
    """
    Doku payment gateway settings.
    Loaded from DOKU_* environment variables or .env file.
    """

    model_config = SettingsConfigDict(env_prefix="DOKU_")

    client_id: str = ""
    secret_key: str = ""
    webhook_secret: str = ""
    environment: Literal["sandbox", "production"] = "sandbox"
    base_url: str = ""
    timeout_seconds: float = 15.0

    @property
    def api_base_url(self) -> str:
        return (self.base_url or _BASE_URLS[self.environment]).rstrip("/")

    @property
    def callback_secret(self) -> str:
        """Secret used to verify inbound callbacks (falls back to secret_key)."""
        return self.webhook_secret or self.secret_key

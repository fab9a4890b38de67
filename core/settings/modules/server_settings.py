from __future__ import annotations

from typing import List

from pydantic_settings import SettingsConfigDict

from core.settings.base import KasirBaseSettings


class ServerSettings(KasirBaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(env_prefix="APP_")

    name: str = "kasir"
    version: str = "1.0.0"
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

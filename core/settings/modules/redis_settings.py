from __future__ import annotations

from pydantic_settings import SettingsConfigDict

from core.settings.base import KasirBaseSettings


class RedisSettings(KasirBaseSettings):
    """
    Redis cache settings.
    The cache is optional; with enabled=False a no-op cache is used.
    """

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    enabled: bool = False
    url: str = "redis://localhost:6379/0"
    key_prefix: str = "kasir:"
    default_ttl: int = 1800  # 30 minutes

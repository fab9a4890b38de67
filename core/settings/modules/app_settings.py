from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, ConfigDict

from core.settings.modules.database_settings import DatabaseSettings
from core.settings.modules.doku_settings import DokuSettings
from core.settings.modules.payment_settings import PaymentSettings
from core.settings.modules.redis_settings import RedisSettings
from core.settings.modules.server_settings import ServerSettings


class AppSettings(BaseModel):
    """Application settings aggregator."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore")

    server: ServerSettings
    database: DatabaseSettings
    redis: RedisSettings
    doku: DokuSettings
    payment: PaymentSettings


@lru_cache()
def get_app_settings() -> AppSettings:
    return AppSettings(
        server=ServerSettings(),
        database=DatabaseSettings(),
        redis=RedisSettings(),
        doku=DokuSettings(),
        payment=PaymentSettings(),
    )

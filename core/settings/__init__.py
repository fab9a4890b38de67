# Settings package
from core.settings.modules import (
    AppSettings,
    DatabaseSettings,
    DokuSettings,
    PaymentSettings,
    RedisSettings,
    ServerSettings,
    get_app_settings,
)

__all__ = [
    "get_app_settings",
    "AppSettings",
    "DatabaseSettings",
    "DokuSettings",
    "PaymentSettings",
    "RedisSettings",
    "ServerSettings",
]

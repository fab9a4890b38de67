# Settings modules
from .app_settings import AppSettings, get_app_settings
from .database_settings import DatabaseSettings
from .doku_settings import DokuSettings
from .payment_settings import PaymentSettings
from .redis_settings import RedisSettings
from .server_settings import ServerSettings

__all__ = [
    "AppSettings",
    "get_app_settings",
    "DatabaseSettings",
    "DokuSettings",
    "PaymentSettings",
    "RedisSettings",
    "ServerSettings",
]

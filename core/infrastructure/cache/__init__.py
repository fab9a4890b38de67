"""Cache layer."""

from .null_cache import NullCacheService
from .redis_cache import RedisCacheService

__all__ = ["NullCacheService", "RedisCacheService"]

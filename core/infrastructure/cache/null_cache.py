"""No-op cache used when Redis is disabled."""
from typing import Any, Optional

from core.application.interfaces import ICacheService


class NullCacheService(ICacheService):
    """Cache that never hits."""

    async def get(self, key: str) -> Optional[Any]:
        return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        return None

    async def delete(self, *keys: str) -> None:
        return None

    async def delete_pattern(self, pattern: str) -> None:
        return None

    async def delete_prefix(self, prefix: str) -> None:
        return None

"""Repository interfaces for Order aggregate."""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from ..entities.order import Order


class OrderRepository(ABC):
    """Abstract repository for Order aggregate persistence."""

    @abstractmethod
    async def add(self, order: Order) -> None:
        """Insert a new order together with its items.

        Args:
            order: Order aggregate to persist
        """
        pass

    @abstractmethod
    async def get(self, order_id: str, for_update: bool = False) -> Optional[Order]:
        """Retrieve order by id.

        Args:
            order_id: Order id
            for_update: Lock the row until the transaction ends

        Returns:
            Order if found, None otherwise
        """
        pass

    @abstractmethod
    async def save(self, order: Order) -> None:
        """Write back the mutable columns of an existing order.

        Items and total_amount are never rewritten.
        """
        pass

    @abstractmethod
    async def delete(self, order_id: str) -> None:
        """Remove an order; items and payments cascade."""
        pass

    @abstractmethod
    async def list_for_user(
        self, user_id: str, limit: int = 10, offset: int = 0
    ) -> Tuple[List[Order], int]:
        """List a user's orders, newest first.

        Returns:
            Tuple of (page of orders, total count)
        """
        pass

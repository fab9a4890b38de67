"""Repository interfaces for Payment entity."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from ..entities.payment import Payment
from ..enums import PaymentMethod, PaymentStatus


@dataclass(frozen=True)
class PaymentFilters:
    """Optional filters for payment listings and statistics."""
    status: Optional[PaymentStatus] = None
    payment_method: Optional[PaymentMethod] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


@dataclass(frozen=True)
class StatusTotals:
    """Count and amount sum of the payments in one status."""
    count: int
    amount: Decimal


class PaymentRepository(ABC):
    """Abstract repository for Payment persistence."""

    @abstractmethod
    async def add(self, payment: Payment) -> None:
        """Insert a new payment."""
        pass

    @abstractmethod
    async def get(self, payment_id: str, for_update: bool = False) -> Optional[Payment]:
        """Retrieve payment by internal id."""
        pass

    @abstractmethod
    async def get_by_gateway_id(
        self, gateway_payment_id: str, for_update: bool = False
    ) -> Optional[Payment]:
        """Retrieve payment by the token the gateway assigned to it."""
        pass

    @abstractmethod
    async def save(self, payment: Payment) -> None:
        """Write back everything except status.

        Status changes must go through transition().
        """
        pass

    @abstractmethod
    async def transition(self, payment: Payment, expected: PaymentStatus) -> bool:
        """Conditionally write the payment, including its new status.

        The write only applies while the stored status still equals
        `expected`.

        Returns:
            True if the row was updated, False if another writer got there first
        """
        pass

    @abstractmethod
    async def ids_for_order(self, order_id: str) -> List[str]:
        """Internal ids of every payment attempt on an order."""
        pass

    @abstractmethod
    async def list_for_user(
        self,
        user_id: str,
        filters: Optional[PaymentFilters] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Payment], int]:
        """List payments on the user's orders, newest first.

        Returns:
            Tuple of (page of payments, total count)
        """
        pass

    @abstractmethod
    async def totals_by_status(
        self, user_id: str, filters: Optional[PaymentFilters] = None
    ) -> Dict[PaymentStatus, StatusTotals]:
        """Aggregate count and amount per status over the filtered set."""
        pass

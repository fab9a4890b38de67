"""Repository interfaces."""

from .order_repository import OrderRepository
from .payment_repository import PaymentFilters, PaymentRepository, StatusTotals

__all__ = ["OrderRepository", "PaymentFilters", "PaymentRepository", "StatusTotals"]

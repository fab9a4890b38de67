"""Repository implementations."""

from .order_repository_impl import SqlAlchemyOrderRepository
from .payment_repository_impl import SqlAlchemyPaymentRepository

__all__ = ["SqlAlchemyOrderRepository", "SqlAlchemyPaymentRepository"]

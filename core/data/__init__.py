"""Data layer - infrastructure persistence and mapping."""

from .mappers import OrderItemMapper, OrderMapper, PaymentMapper
from .models import Base, OrderItemModel, OrderModel, PaymentModel
from .repositories import SqlAlchemyOrderRepository, SqlAlchemyPaymentRepository
from .uow import UnitOfWork, create_uow

__all__ = [
    "Base",
    "create_uow",
    "OrderItemMapper",
    "OrderItemModel",
    "OrderMapper",
    "OrderModel",
    "PaymentMapper",
    "PaymentModel",
    "SqlAlchemyOrderRepository",
    "SqlAlchemyPaymentRepository",
    "UnitOfWork",
]

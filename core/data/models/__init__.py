"""Database models."""

from .base import Base
from .order_model import OrderItemModel, OrderModel
from .payment_model import PaymentModel

__all__ = ["Base", "OrderModel", "OrderItemModel", "PaymentModel"]

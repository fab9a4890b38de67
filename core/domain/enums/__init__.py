"""Domain enums."""

from .order_status import OrderStatus, PaymentStatus
from .payment_method import PaymentMethod

__all__ = ["OrderStatus", "PaymentStatus", "PaymentMethod"]

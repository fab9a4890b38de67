"""
Order and payment status enums.

Values are persisted verbatim and travel on the wire, so they must stay
upper-case.
"""
from enum import Enum


class OrderStatus(str, Enum):
    """Fulfillment status of an order."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PaymentStatus(str, Enum):
    """Settlement status shared by Order.payment_status and Payment.status."""

    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.PENDING

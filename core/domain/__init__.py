"""Domain layer - pure domain models and interfaces."""

from .entities import Order, OrderItem, Payment
from .repositories import OrderRepository, PaymentRepository
from .value_objects import ExecutionID, OrderNumber, PaymentLedger

__all__ = [
    "ExecutionID",
    "Order",
    "OrderItem",
    "OrderNumber",
    "OrderRepository",
    "Payment",
    "PaymentLedger",
    "PaymentRepository",
]

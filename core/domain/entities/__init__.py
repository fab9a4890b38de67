"""Domain entities."""

from .order import Order, OrderItem
from .payment import Payment

__all__ = ["Order", "OrderItem", "Payment"]

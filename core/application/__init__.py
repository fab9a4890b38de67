"""Application layer - services, interfaces, and DTOs."""

from .dtos import CreateOrderRequest, OrderDTO, OrderItemDTO, OrderListDTO, PaymentDTO
from .services import LifecycleCoordinator
from .interfaces import ICacheService, IPaymentGateway

__all__ = [
    # DTOs
    "CreateOrderRequest",
    "OrderDTO",
    "OrderItemDTO",
    "OrderListDTO",
    "PaymentDTO",
    # Services
    "LifecycleCoordinator",
    # Interfaces
    "ICacheService",
    "IPaymentGateway",
]

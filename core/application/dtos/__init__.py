"""Application DTOs."""

from .order_dto import (
    CancelOrderRequest,
    CreateOrderRequest,
    OrderDTO,
    OrderItemDTO,
    OrderItemRequest,
    OrderListDTO,
    Pagination,
    UpdateOrderRequest,
)
from .payment_dto import (
    CreatePaymentRequest,
    CustomerDetails,
    PaymentCallbackPayload,
    PaymentDTO,
    PaymentListDTO,
    PaymentStatisticsDTO,
    PaymentStatusDTO,
    RefundDTO,
    RefundRequest,
    UpdatePaymentStatusRequest,
)

__all__ = [
    "CancelOrderRequest",
    "CreateOrderRequest",
    "OrderDTO",
    "OrderItemDTO",
    "OrderItemRequest",
    "OrderListDTO",
    "Pagination",
    "UpdateOrderRequest",
    "CreatePaymentRequest",
    "CustomerDetails",
    "PaymentCallbackPayload",
    "PaymentDTO",
    "PaymentListDTO",
    "PaymentStatisticsDTO",
    "PaymentStatusDTO",
    "RefundDTO",
    "RefundRequest",
    "UpdatePaymentStatusRequest",
]

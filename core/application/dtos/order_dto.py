"""Application DTOs for Order operations."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.domain.enums import OrderStatus, PaymentStatus

# camelCase on the wire, snake_case in Python
WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class OrderItemRequest(BaseModel):
    """One line of a create-order request."""

    model_config = WIRE_CONFIG

    product_name: str = Field(..., min_length=1, max_length=255, description="Product name")
    quantity: int = Field(..., gt=0, description="Quantity ordered")
    price: Decimal = Field(..., ge=0, description="Unit price")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Free-form item metadata")


class CreateOrderRequest(BaseModel):
    """Request DTO for creating an order."""

    model_config = WIRE_CONFIG

    items: List[OrderItemRequest] = Field(..., min_length=1, description="Order items")
    notes: Optional[str] = Field(None, max_length=500, description="Order notes")


class UpdateOrderRequest(BaseModel):
    """Request DTO for updating notes or moving the order one step forward."""

    model_config = WIRE_CONFIG

    status: Optional[OrderStatus] = Field(None, description="Next fulfillment status")
    notes: Optional[str] = Field(None, max_length=500, description="Order notes")


class CancelOrderRequest(BaseModel):
    """Request DTO for cancelling an order."""

    model_config = WIRE_CONFIG

    reason: Optional[str] = Field(None, max_length=500, description="Cancellation reason")


class OrderItemDTO(BaseModel):
    """DTO for order item."""

    model_config = WIRE_CONFIG

    id: Optional[str] = None
    product_name: str
    quantity: int
    price: Decimal
    subtotal: Decimal
    metadata: Optional[Dict[str, Any]] = None


class OrderDTO(BaseModel):
    """Response DTO for order details."""

    model_config = WIRE_CONFIG

    id: str = Field(..., description="Order id")
    user_id: str = Field(..., description="Owner id")
    order_number: str = Field(..., description="Human-readable order number")
    total_amount: Decimal = Field(..., ge=0, description="Total order amount")
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    payment_id: Optional[str] = None
    notes: Optional[str] = None
    items: List[OrderItemDTO] = Field(default_factory=list, description="Order items")
    created_at: datetime
    updated_at: datetime


class Pagination(BaseModel):
    """Page metadata for list responses."""

    model_config = WIRE_CONFIG

    page: int
    limit: int
    total: int
    total_pages: int


class OrderListDTO(BaseModel):
    """DTO for listing orders."""

    model_config = WIRE_CONFIG

    orders: List[OrderDTO] = Field(default_factory=list, description="List of orders")
    pagination: Pagination

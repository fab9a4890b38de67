"""Application DTOs for Payment operations."""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.domain.enums import PaymentMethod, PaymentStatus

from .order_dto import WIRE_CONFIG, Pagination


class CustomerDetails(BaseModel):
    """Customer contact forwarded to the gateway."""

    model_config = WIRE_CONFIG

    name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)


class CreatePaymentRequest(BaseModel):
    """Request DTO for creating a payment."""

    model_config = WIRE_CONFIG

    order_id: str = Field(..., min_length=1)
    payment_method: PaymentMethod
    amount: Decimal = Field(..., gt=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    customer_details: Optional[CustomerDetails] = None
    expiry_minutes: Optional[int] = Field(None, gt=0, le=60 * 24 * 30)
    callback_url: Optional[str] = None
    return_url: Optional[str] = None


class PaymentCallbackPayload(BaseModel):
    """Gateway callback body (checked after the signature)."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, extra="allow"
    )

    payment_id: str = Field(..., min_length=1)
    order_id: Optional[str] = None
    status: PaymentStatus
    transaction_id: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    payment_date: Optional[str] = None
    signature: str
    raw_response: Optional[Any] = None


class UpdatePaymentStatusRequest(BaseModel):
    """Request DTO for a manual status override."""

    model_config = WIRE_CONFIG

    status: PaymentStatus
    transaction_id: Optional[str] = Field(None, max_length=100)
    failure_reason: Optional[str] = Field(None, max_length=500)


class RefundRequest(BaseModel):
    """Request DTO for refunding a payment."""

    model_config = WIRE_CONFIG

    amount: Optional[Decimal] = Field(None, gt=0)
    reason: Optional[str] = Field(None, max_length=500)


class PaymentDTO(BaseModel):
    """Response DTO for payment details."""

    model_config = WIRE_CONFIG

    payment_id: str = Field(..., description="Internal payment id")
    order_id: str
    order_number: Optional[str] = None
    amount: Decimal
    currency: str
    payment_method: PaymentMethod
    status: PaymentStatus
    token_id: Optional[str] = Field(None, description="Gateway payment token")
    payment_url: Optional[str] = None
    transaction_id: Optional[str] = None
    expiry_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    # Method-specific fields
    va_number: Optional[str] = None
    va_name: Optional[str] = None
    qr_code: Optional[str] = None
    redirect_url: Optional[str] = None


class PaymentStatusDTO(BaseModel):
    """Result of a callback or manual status update."""

    model_config = WIRE_CONFIG

    payment_id: str
    order_id: str
    status: PaymentStatus
    transaction_id: Optional[str] = None


class RefundDTO(BaseModel):
    """Result of a refund."""

    model_config = WIRE_CONFIG

    payment_id: str
    order_id: str
    status: PaymentStatus
    refund_amount: Decimal


class PaymentListDTO(BaseModel):
    """DTO for listing payments."""

    model_config = WIRE_CONFIG

    payments: List[PaymentDTO] = Field(default_factory=list)
    pagination: Pagination


class PaymentStatisticsDTO(BaseModel):
    """Aggregates over a user's payments."""

    model_config = WIRE_CONFIG

    total_payments: int
    total_amount: Decimal
    successful_payments: int
    failed_payments: int
    pending_payments: int
    refunded_payments: int
    average_amount: Decimal

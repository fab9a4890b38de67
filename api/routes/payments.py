"""
Payment endpoints.

The callback route is authenticated by its HMAC signature instead of the
caller header, and reads the raw JSON body so the signature is checked over
exactly what the gateway sent.
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status

from api.dependencies import get_coordinator, get_current_user_id
from api.responses import envelope
from core.application.dtos import CreatePaymentRequest, RefundRequest, UpdatePaymentStatusRequest
from core.application.services import LifecycleCoordinator
from core.domain.clock import to_naive_utc
from core.domain.enums import PaymentMethod, PaymentStatus
from core.domain.errors import ValidationError
from core.domain.repositories.payment_repository import PaymentFilters

logger = logging.getLogger(__name__)
router = APIRouter()


def _filters(
    status_filter: Optional[PaymentStatus],
    payment_method: Optional[PaymentMethod],
    start_date: Optional[datetime],
    end_date: Optional[datetime],
) -> PaymentFilters:
    start = to_naive_utc(start_date) if start_date else None
    end = to_naive_utc(end_date) if end_date else None
    if start and end and start > end:
        raise ValidationError("startDate must not be after endDate")
    return PaymentFilters(
        status=status_filter,
        payment_method=payment_method,
        start_date=start,
        end_date=end,
    )


@router.post(
    "/callback",
    status_code=status.HTTP_200_OK,
    summary="Gateway payment callback",
    description="Asynchronous payment notification, authenticated by HMAC signature.",
)
async def payment_callback(
    request: Request,
    coordinator: LifecycleCoordinator = Depends(get_coordinator),
):
    try:
        payload = await request.json()
    except ValueError as e:
        raise ValidationError("Callback body must be JSON") from e
    if not isinstance(payload, dict):
        raise ValidationError("Callback body must be a JSON object")

    result = await coordinator.handle_callback(payload)
    return envelope(result, "Callback processed successfully")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create payment",
    description="Create a payment for an order and open it with the gateway.",
)
async def create_payment(
    request: CreatePaymentRequest,
    user_id: str = Depends(get_current_user_id),
    coordinator: LifecycleCoordinator = Depends(get_coordinator),
):
    payment = await coordinator.create_payment(
        user_id=user_id,
        order_id=request.order_id,
        payment_method=request.payment_method,
        amount=request.amount,
        customer_details=request.customer_details,
        expiry_minutes=request.expiry_minutes,
        currency=request.currency,
        callback_url=request.callback_url,
        return_url=request.return_url,
    )
    return envelope(payment, "Payment created successfully")


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    summary="List payments",
)
async def list_payments(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status_filter: Optional[PaymentStatus] = Query(default=None, alias="status"),
    payment_method: Optional[PaymentMethod] = Query(default=None, alias="paymentMethod"),
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    user_id: str = Depends(get_current_user_id),
    coordinator: LifecycleCoordinator = Depends(get_coordinator),
):
    filters = _filters(status_filter, payment_method, start_date, end_date)
    return envelope(await coordinator.list_payments(user_id, filters, page=page, limit=limit))


@router.get(
    "/statistics",
    status_code=status.HTTP_200_OK,
    summary="Payment statistics",
)
async def payment_statistics(
    payment_method: Optional[PaymentMethod] = Query(default=None, alias="paymentMethod"),
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    user_id: str = Depends(get_current_user_id),
    coordinator: LifecycleCoordinator = Depends(get_coordinator),
):
    filters = _filters(None, payment_method, start_date, end_date)
    return envelope(await coordinator.get_payment_statistics(user_id, filters))


@router.get(
    "/{payment_id}",
    status_code=status.HTTP_200_OK,
    summary="Get payment by ID",
)
async def get_payment(
    payment_id: str,
    user_id: str = Depends(get_current_user_id),
    coordinator: LifecycleCoordinator = Depends(get_coordinator),
):
    return envelope(await coordinator.get_payment(payment_id, user_id))


@router.put(
    "/{payment_id}/status",
    status_code=status.HTTP_200_OK,
    summary="Update payment status",
    description="Manual status override by the order owner.",
)
async def update_payment_status(
    payment_id: str,
    request: UpdatePaymentStatusRequest,
    user_id: str = Depends(get_current_user_id),
    coordinator: LifecycleCoordinator = Depends(get_coordinator),
):
    result = await coordinator.update_payment_status(
        payment_id,
        user_id,
        request.status,
        transaction_id=request.transaction_id,
        failure_reason=request.failure_reason,
    )
    return envelope(result, "Payment status updated successfully")


@router.post(
    "/{payment_id}/refund",
    status_code=status.HTTP_200_OK,
    summary="Refund payment",
)
async def refund_payment(
    payment_id: str,
    request: Optional[RefundRequest] = Body(None),
    user_id: str = Depends(get_current_user_id),
    coordinator: LifecycleCoordinator = Depends(get_coordinator),
):
    result = await coordinator.refund_payment(
        payment_id,
        user_id,
        amount=request.amount if request else None,
        reason=request.reason if request else None,
    )
    return envelope(result, "Payment refunded successfully")

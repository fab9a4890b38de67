"""
Orders management endpoints.

Provides CRUD operations for the caller's orders.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status

from api.dependencies import get_coordinator, get_current_user_id
from api.responses import envelope
from core.application.dtos import CancelOrderRequest, CreateOrderRequest, UpdateOrderRequest
from core.application.services import LifecycleCoordinator

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create order",
    description="Create a PENDING order; the total is computed from the items.",
)
async def create_order(
    request: CreateOrderRequest,
    user_id: str = Depends(get_current_user_id),
    coordinator: LifecycleCoordinator = Depends(get_coordinator),
):
    order = await coordinator.create_order(user_id, request.items, request.notes)
    return envelope(order, "Order created successfully")


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    summary="List orders",
    description="List the caller's orders, newest first.",
)
async def list_orders(
    page: int = Query(default=1, ge=1, description="Page number"),
    limit: int = Query(default=10, ge=1, le=100, description="Orders per page"),
    user_id: str = Depends(get_current_user_id),
    coordinator: LifecycleCoordinator = Depends(get_coordinator),
):
    return envelope(await coordinator.list_orders(user_id, page=page, limit=limit))


@router.get(
    "/{order_id}",
    status_code=status.HTTP_200_OK,
    summary="Get order by ID",
)
async def get_order(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
    coordinator: LifecycleCoordinator = Depends(get_coordinator),
):
    return envelope(await coordinator.get_order(order_id, user_id))


@router.put(
    "/{order_id}",
    status_code=status.HTTP_200_OK,
    summary="Update order",
    description="Update notes and/or move the order one fulfillment step forward.",
)
async def update_order(
    order_id: str,
    request: UpdateOrderRequest,
    user_id: str = Depends(get_current_user_id),
    coordinator: LifecycleCoordinator = Depends(get_coordinator),
):
    order = await coordinator.update_order(
        order_id, user_id, status=request.status, notes=request.notes
    )
    return envelope(order, "Order updated successfully")


@router.post(
    "/{order_id}/cancel",
    status_code=status.HTTP_200_OK,
    summary="Cancel order",
)
async def cancel_order(
    order_id: str,
    request: Optional[CancelOrderRequest] = Body(None),
    user_id: str = Depends(get_current_user_id),
    coordinator: LifecycleCoordinator = Depends(get_coordinator),
):
    reason = request.reason if request else None
    order = await coordinator.cancel_order(order_id, user_id, reason)
    return envelope(order, "Order cancelled successfully")


@router.delete(
    "/{order_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete order",
)
async def delete_order(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
    coordinator: LifecycleCoordinator = Depends(get_coordinator),
):
    await coordinator.delete_order(order_id, user_id)
    return envelope(message="Order deleted successfully")

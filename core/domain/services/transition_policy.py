"""
State-transition policy for the (Order.status, Payment.status) pair.

Pure functions only; entities call into this module and the lifecycle
coordinator relies on it for every write.
"""
from enum import Enum

from ..enums import OrderStatus, PaymentStatus
from ..errors import ConflictError

# Orders in these states are already with the courier or the customer
CANCEL_BLOCKED = frozenset({OrderStatus.SHIPPED, OrderStatus.DELIVERED})

# In-flight orders cannot be deleted
DELETE_BLOCKED = frozenset({OrderStatus.CONFIRMED, OrderStatus.PROCESSING})

# Orders that a PAID outcome moves into processing
PAYABLE_ORDER_STATES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})

# Forward-only fulfillment steps reachable through update_order
FULFILLMENT_STEPS = {
    OrderStatus.PENDING: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.PROCESSING,
    OrderStatus.PROCESSING: OrderStatus.SHIPPED,
    OrderStatus.SHIPPED: OrderStatus.DELIVERED,
}


class Reconciliation(str, Enum):
    """Outcome of comparing a reported payment status with the stored one."""

    UNCHANGED = "unchanged"
    TRANSITION = "transition"


def check_cancellable(status: OrderStatus) -> None:
    if status in CANCEL_BLOCKED:
        raise ConflictError(f"Order cannot be cancelled in status {status.value}")


def check_deletable(status: OrderStatus) -> None:
    if status in DELETE_BLOCKED:
        raise ConflictError(f"Order cannot be deleted in status {status.value}")


def check_fulfillment_step(current: OrderStatus, target: OrderStatus) -> None:
    """Only the next forward step is allowed; cancellation has its own operation."""
    if current == target:
        return
    if FULFILLMENT_STEPS.get(current) != target:
        raise ConflictError(
            f"Order cannot move from {current.value} to {target.value}"
        )


def check_refundable(status: PaymentStatus) -> None:
    if status is not PaymentStatus.PAID:
        raise ConflictError(
            f"Only paid payments can be refunded (status is {status.value})"
        )


def decide_reconciliation(current: PaymentStatus, target: PaymentStatus) -> Reconciliation:
    """
    Decide how a reported status applies to a payment.

    Same status is an idempotent re-delivery, and so is a late PAID for a
    payment that has since been refunded. PENDING may resolve to PAID or
    FAILED. Everything else is a conflict; REFUNDED is only reachable through
    the refund operation.

    Raises:
        ConflictError: If the transition is not allowed
    """
    if current == target:
        return Reconciliation.UNCHANGED

    # Refunds only start from PAID
    if current is PaymentStatus.REFUNDED and target is PaymentStatus.PAID:
        return Reconciliation.UNCHANGED

    if current is PaymentStatus.PENDING and target in (PaymentStatus.PAID, PaymentStatus.FAILED):
        return Reconciliation.TRANSITION

    if target is PaymentStatus.REFUNDED:
        raise ConflictError("Refunds must go through the refund operation")

    raise ConflictError(
        f"Payment cannot move from {current.value} to {target.value}"
    )


def order_status_after_payment(order_status: OrderStatus, payment_status: PaymentStatus) -> OrderStatus:
    """Order status implied by a payment outcome."""
    if payment_status is PaymentStatus.PAID:
        if order_status in PAYABLE_ORDER_STATES:
            return OrderStatus.PROCESSING
        return order_status

    if payment_status is PaymentStatus.FAILED:
        if order_status in CANCEL_BLOCKED:
            return order_status
        return OrderStatus.CANCELLED

    return order_status

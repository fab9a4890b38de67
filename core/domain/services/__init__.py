"""Domain services."""

from .transition_policy import (
    Reconciliation,
    check_cancellable,
    check_deletable,
    check_fulfillment_step,
    check_refundable,
    decide_reconciliation,
    order_status_after_payment,
)

__all__ = [
    "Reconciliation",
    "check_cancellable",
    "check_deletable",
    "check_fulfillment_step",
    "check_refundable",
    "decide_reconciliation",
    "order_status_after_payment",
]

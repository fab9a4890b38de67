"""
Order aggregate root.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
- fastapi
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from ..clock import utcnow
from ..enums import OrderStatus, PaymentMethod, PaymentStatus
from ..errors import ValidationError
from ..services import transition_policy as policy
from ..value_objects import LedgerSource, OrderNumber, PaymentLedger, to_decimal

MAX_NOTES_LENGTH = 500


@dataclass
class OrderItem:
    """Individual line item within an order."""
    product_name: str
    quantity: int
    price: Decimal
    metadata: Optional[Dict[str, Any]] = None
    id: Optional[str] = None

    def __post_init__(self):
        if not self.product_name or not self.product_name.strip():
            raise ValidationError("Product name is required")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity <= 0:
            raise ValidationError(
                f"Quantity must be a positive integer, got: {self.quantity}"
            )
        try:
            self.price = to_decimal(self.price)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if self.price < 0:
            raise ValidationError(f"Price cannot be negative, got: {self.price}")

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


@dataclass
class Order:
    """
    Order aggregate root.

    total_amount is computed once from the items at creation and never
    recomputed. Status changes go through the methods below, which delegate
    to the transition policy.
    """
    id: str
    user_id: str
    order_number: OrderNumber
    total_amount: Decimal
    items: List[OrderItem] = field(default_factory=list)
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: Optional[PaymentMethod] = None
    payment_id: Optional[str] = None
    payment_data: PaymentLedger = field(default_factory=PaymentLedger)
    notes: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(
        cls,
        user_id: str,
        items: Iterable[OrderItem],
        notes: Optional[str] = None,
    ) -> "Order":
        """
        Factory for a new PENDING order.

        Args:
            user_id: Owner of the order
            items: Line items (at least one)
            notes: Optional free text, at most 500 characters

        Returns:
            New Order with a generated id and order number

        Raises:
            ValidationError: If items are empty or notes are too long
        """
        items = list(items)
        if not items:
            raise ValidationError("Order must contain at least one item")
        _check_notes(notes)

        total = sum((item.subtotal for item in items), Decimal("0"))
        now = utcnow()
        return cls(
            id=str(uuid.uuid4()),
            user_id=user_id,
            order_number=OrderNumber.generate(),
            total_amount=total,
            items=items,
            notes=notes,
            created_at=now,
            updated_at=now,
        )

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id

    def update_notes(self, notes: Optional[str]) -> None:
        _check_notes(notes)
        self.notes = notes
        self._touch()

    def advance_to(self, status: OrderStatus) -> None:
        """Move one fulfillment step forward (PENDING -> ... -> DELIVERED)."""
        policy.check_fulfillment_step(self.status, status)
        self.status = status
        self._touch()

    def cancel(self) -> None:
        policy.check_cancellable(self.status)
        self.status = OrderStatus.CANCELLED
        self._touch()

    def ensure_deletable(self) -> None:
        policy.check_deletable(self.status)

    def record(self, source: str, payload: Optional[Dict[str, Any]] = None) -> None:
        """Append an entry to the order's payment ledger."""
        self.payment_data = self.payment_data.append(source, payload)
        self._touch()

    def apply_payment_outcome(
        self,
        payment_status: PaymentStatus,
        transaction_id: Optional[str],
        payment_method: Optional[PaymentMethod],
    ) -> bool:
        """
        Reflect a resolved payment on the order.

        Only the first resolved payment counts: once payment_status has left
        PENDING, later outcomes are ignored and False is returned.
        """
        if self.payment_status is not PaymentStatus.PENDING:
            return False
        if payment_status is PaymentStatus.PENDING:
            return False

        self.payment_status = payment_status
        if payment_status is PaymentStatus.PAID:
            self.payment_id = transaction_id
            self.payment_method = payment_method
        self.status = policy.order_status_after_payment(self.status, payment_status)
        self._touch()
        return True

    def mark_refunded(self, refund_details: Dict[str, Any]) -> None:
        """Payment was refunded: order is cancelled and flagged REFUNDED."""
        self.payment_status = PaymentStatus.REFUNDED
        self.status = OrderStatus.CANCELLED
        self.record(LedgerSource.REFUND, refund_details)

    def _touch(self) -> None:
        self.updated_at = utcnow()


def _check_notes(notes: Optional[str]) -> None:
    if notes is not None and len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError(
            f"Notes cannot exceed {MAX_NOTES_LENGTH} characters"
        )

"""
Payment entity.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
- fastapi
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional

from ..clock import utcnow
from ..enums import PaymentMethod, PaymentStatus
from ..errors import ValidationError
from ..services import transition_policy as policy
from ..services.transition_policy import Reconciliation
from ..value_objects import LedgerSource, PaymentLedger

DEFAULT_EXPIRY_MINUTES = 60


@dataclass
class Payment:
    """
    One payment attempt against an order.

    amount is fixed at creation. status leaves PENDING only through
    resolve() or mark_refunded(); gateway_payment_id is set once the
    gateway accepted the payment.
    """
    id: str
    order_id: str
    amount: Decimal
    payment_method: PaymentMethod
    currency: str = "IDR"
    status: PaymentStatus = PaymentStatus.PENDING
    gateway_payment_id: Optional[str] = None
    payment_url: Optional[str] = None
    transaction_id: Optional[str] = None
    expiry_date: Optional[datetime] = None
    payment_data: PaymentLedger = field(default_factory=PaymentLedger)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(
        cls,
        order_id: str,
        amount: Decimal,
        payment_method: PaymentMethod,
        currency: str = "IDR",
        expiry_minutes: Optional[int] = None,
        customer_details: Optional[Dict[str, Any]] = None,
    ) -> "Payment":
        """
        Factory for a new PENDING payment.

        Args:
            order_id: Order being paid
            amount: Exact amount, already checked against the order total
            payment_method: Customer-facing payment method
            currency: ISO currency code
            expiry_minutes: Minutes until the payment expires (default 60)
            customer_details: Name/email/phone forwarded to the gateway

        Raises:
            ValidationError: If expiry_minutes is not positive
        """
        if expiry_minutes is None:
            expiry_minutes = DEFAULT_EXPIRY_MINUTES
        if expiry_minutes <= 0:
            raise ValidationError("Expiry minutes must be positive")

        now = utcnow()
        ledger = PaymentLedger()
        if customer_details:
            ledger = ledger.append(LedgerSource.CUSTOMER_DETAILS, customer_details, now)

        return cls(
            id=str(uuid.uuid4()),
            order_id=order_id,
            amount=amount,
            payment_method=PaymentMethod(payment_method),
            currency=(currency or "IDR").upper(),
            expiry_date=now + timedelta(minutes=expiry_minutes),
            payment_data=ledger,
            created_at=now,
            updated_at=now,
        )

    @property
    def expiry_minutes(self) -> int:
        if self.expiry_date is None:
            return DEFAULT_EXPIRY_MINUTES
        return max(int((self.expiry_date - self.created_at).total_seconds() // 60), 1)

    @property
    def customer_details(self) -> Dict[str, Any]:
        entry = self.payment_data.latest(LedgerSource.CUSTOMER_DETAILS)
        return dict(entry.payload) if entry else {}

    def attach_gateway(
        self,
        gateway_payment_id: str,
        payment_url: Optional[str],
        raw_response: Dict[str, Any],
    ) -> None:
        """Store the gateway token and echo its raw answer into the ledger."""
        self.gateway_payment_id = gateway_payment_id
        self.payment_url = payment_url
        self.record(LedgerSource.GATEWAY_RESPONSE, raw_response)

    def record(self, source: str, payload: Optional[Dict[str, Any]] = None) -> None:
        """Append an entry to the payment ledger."""
        self.payment_data = self.payment_data.append(source, payload)
        self.updated_at = utcnow()

    def resolve(self, status: PaymentStatus, transaction_id: Optional[str]) -> Reconciliation:
        """
        Apply a reported outcome (callback or manual update).

        Returns UNCHANGED for a re-delivery of the current status and leaves
        the entity untouched in that case.

        Raises:
            ConflictError: If the payment cannot move to the reported status
        """
        outcome = policy.decide_reconciliation(self.status, PaymentStatus(status))
        if outcome is Reconciliation.TRANSITION:
            self.status = PaymentStatus(status)
            if transaction_id:
                self.transaction_id = transaction_id
            self.updated_at = utcnow()
        return outcome

    def mark_refunded(self, refund_details: Dict[str, Any]) -> None:
        policy.check_refundable(self.status)
        self.status = PaymentStatus.REFUNDED
        self.record(LedgerSource.REFUND, refund_details)

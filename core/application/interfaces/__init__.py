"""Application layer interfaces."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from core.domain.enums import PaymentMethod
from core.domain.value_objects import PaymentInstructions


@dataclass(frozen=True)
class GatewayPaymentRequest:
    """Everything the gateway needs to open a payment."""
    invoice_number: str
    amount: Decimal
    currency: str
    payment_method: PaymentMethod
    expiry_minutes: int
    customer_details: Dict[str, Any] = field(default_factory=dict)
    callback_url: Optional[str] = None
    return_url: Optional[str] = None


@dataclass(frozen=True)
class GatewayPaymentResult:
    """Gateway answer to a create-payment call."""
    token: str
    payment_url: Optional[str]
    expiry_date: Optional[datetime]
    instructions: PaymentInstructions
    raw: Dict[str, Any]


@dataclass(frozen=True)
class GatewayRefundReceipt:
    """Gateway answer to a refund call."""
    gateway_payment_id: str
    amount: Decimal
    refund_id: Optional[str]
    raw: Dict[str, Any]


class IPaymentGateway(ABC):
    """
    Interface for the external payment gateway.

    Implementations raise UpstreamError for every failure mode (timeout,
    transport error, non-2xx answer, unparsable body) and never retry.
    """

    @abstractmethod
    async def create_payment(self, request: GatewayPaymentRequest) -> GatewayPaymentResult:
        """
        Open a payment with the gateway.

        Args:
            request: Payment request

        Returns:
            Gateway token, payment URL and method-specific instructions

        Raises:
            UpstreamError: If the gateway call fails
        """
        pass

    @abstractmethod
    async def create_refund(self, gateway_payment_id: str, amount: Decimal) -> GatewayRefundReceipt:
        """
        Refund a settled payment.

        Args:
            gateway_payment_id: Token returned by create_payment
            amount: Amount to refund

        Raises:
            UpstreamError: If the gateway call fails
        """
        pass

    async def close(self) -> None:
        """Release network resources."""
        return None


class ICacheService(ABC):
    """
    Interface for the read-through cache.

    The cache is never authoritative. Implementations swallow and log
    backend errors: a failing cache behaves like an empty one.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the cached JSON value or None."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store a JSON-serializable value."""
        pass

    @abstractmethod
    async def delete(self, *keys: str) -> None:
        """Drop the given keys."""
        pass

    @abstractmethod
    async def delete_pattern(self, pattern: str) -> None:
        """Drop every key matching a glob pattern."""
        pass

    @abstractmethod
    async def delete_prefix(self, prefix: str) -> None:
        """Drop every key starting with prefix; glob characters in it are literal."""
        pass

    async def close(self) -> None:
        """Release network resources."""
        return None

"""
Method-specific payment instructions.

Each payment method yields a different response shape. The variant is picked
once, from the gateway answer, by build_instructions(); everything downstream
works with the variant instead of branching on the method string.
"""
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from ..enums import PaymentMethod


@dataclass(frozen=True)
class CreditCardInstructions:
    """Hosted card form."""
    payment_url: Optional[str] = None

    def response_fields(self) -> Dict[str, Any]:
        return {}


@dataclass(frozen=True)
class VirtualAccountInstructions:
    """Bank virtual account to transfer into."""
    va_number: Optional[str] = None
    va_name: Optional[str] = None

    def response_fields(self) -> Dict[str, Any]:
        return {"va_number": self.va_number, "va_name": self.va_name}


@dataclass(frozen=True)
class QrisInstructions:
    """QRIS code to scan."""
    qr_code: Optional[str] = None

    def response_fields(self) -> Dict[str, Any]:
        return {"qr_code": self.qr_code}


@dataclass(frozen=True)
class EWalletInstructions:
    """Redirect to the e-wallet provider."""
    redirect_url: Optional[str] = None

    def response_fields(self) -> Dict[str, Any]:
        return {"redirect_url": self.redirect_url}


PaymentInstructions = Union[
    CreditCardInstructions,
    VirtualAccountInstructions,
    QrisInstructions,
    EWalletInstructions,
]


def build_instructions(
    method: PaymentMethod,
    gateway_payment: Optional[Mapping[str, Any]],
) -> PaymentInstructions:
    """
    Select the instructions variant for a payment method.

    Args:
        method: Payment method chosen by the customer
        gateway_payment: The `payment` object of the gateway response

    Returns:
        Instructions variant populated from the gateway payload
    """
    data = gateway_payment or {}
    method = PaymentMethod(method)

    if method in (PaymentMethod.VIRTUAL_ACCOUNT, PaymentMethod.BANK_TRANSFER):
        return VirtualAccountInstructions(
            va_number=data.get("va_number"),
            va_name=data.get("va_name"),
        )
    if method is PaymentMethod.QRIS:
        return QrisInstructions(qr_code=data.get("qr_code"))
    if method is PaymentMethod.EWALLET:
        return EWalletInstructions(redirect_url=data.get("payment_url"))
    return CreditCardInstructions(payment_url=data.get("payment_url"))

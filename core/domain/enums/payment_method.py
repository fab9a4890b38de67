"""Payment method enum."""
from enum import Enum
from typing import List


# Gateway payment_method_types per method
_GATEWAY_TYPES = {
    "credit_card": ["CREDIT_CARD"],
    "bank_transfer": ["VIRTUAL_ACCOUNT"],
    "ewallet": ["EWALLET"],
    "qris": ["QRIS"],
    "virtual_account": ["VIRTUAL_ACCOUNT"],
}


class PaymentMethod(str, Enum):
    """Customer-facing payment methods."""

    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    EWALLET = "ewallet"
    QRIS = "qris"
    VIRTUAL_ACCOUNT = "virtual_account"

    @property
    def gateway_types(self) -> List[str]:
        """Doku `payment_method_types` for this method."""
        return list(_GATEWAY_TYPES[self.value])

"""Domain value objects."""

from .value_objects import ExecutionID, to_decimal
from .order_number import OrderNumber
from .payment_ledger import LedgerEntry, LedgerSource, PaymentLedger, to_jsonable
from .payment_instructions import (
    CreditCardInstructions,
    EWalletInstructions,
    PaymentInstructions,
    QrisInstructions,
    VirtualAccountInstructions,
    build_instructions,
)

__all__ = [
    "ExecutionID",
    "to_decimal",
    "OrderNumber",
    "LedgerEntry",
    "LedgerSource",
    "PaymentLedger",
    "to_jsonable",
    "CreditCardInstructions",
    "EWalletInstructions",
    "PaymentInstructions",
    "QrisInstructions",
    "VirtualAccountInstructions",
    "build_instructions",
]

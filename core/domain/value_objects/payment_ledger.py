"""
Append-only payment ledger.

Both Order.payment_data and Payment.payment_data are ledgers: an ordered list
of {source, timestamp, payload} entries. Entries are never rewritten or
removed, so the list replays every gateway interaction in arrival order.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..clock import utcnow


class LedgerSource:
    """Well-known ledger entry sources."""

    CUSTOMER_DETAILS = "customer_details"
    GATEWAY_RESPONSE = "gateway_response"
    GATEWAY_ERROR = "gateway_error"
    CALLBACK = "callback"
    MANUAL_UPDATE = "manual_update"
    REFUND = "refund"


def to_jsonable(value: Any) -> Any:
    """Recursively convert Decimals, datetimes and enums to JSON-safe values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


@dataclass(frozen=True)
class LedgerEntry:
    """Single audit record."""
    source: str
    timestamp: datetime
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "timestamp": self.timestamp.isoformat(),
            "payload": to_jsonable(self.payload),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerEntry":
        return cls(
            source=data["source"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            payload=data.get("payload") or {},
        )


@dataclass(frozen=True)
class PaymentLedger:
    """Immutable, append-only sequence of LedgerEntry."""
    entries: Tuple[LedgerEntry, ...] = ()

    def append(
        self,
        source: str,
        payload: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
    ) -> "PaymentLedger":
        """Return a new ledger with one more entry at the end."""
        entry = LedgerEntry(
            source=source,
            timestamp=timestamp or utcnow(),
            payload=to_jsonable(payload or {}),
        )
        return PaymentLedger(entries=self.entries + (entry,))

    def latest(self, source: str) -> Optional[LedgerEntry]:
        """Most recent entry from the given source."""
        for entry in reversed(self.entries):
            if entry.source == source:
                return entry
        return None

    def by_source(self, source: str) -> List[LedgerEntry]:
        return [e for e in self.entries if e.source == source]

    def __len__(self) -> int:
        return len(self.entries)

    def to_list(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.entries]

    @classmethod
    def from_list(cls, data: Optional[List[Dict[str, Any]]]) -> "PaymentLedger":
        if not data:
            return cls()
        return cls(entries=tuple(LedgerEntry.from_dict(item) for item in data))

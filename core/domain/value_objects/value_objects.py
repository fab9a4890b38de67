"""Domain value objects - pure Python immutable types."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID, uuid4


def to_decimal(value: Any) -> Decimal:
    """
    Convert a wire/database value to an exact Decimal.

    Floats go through str() so 0.1 stays 0.1 instead of its binary expansion.

    Raises:
        ValueError: If value is not a finite number
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ValueError(f"Not a monetary amount: {value!r}")
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, TypeError) as e:
            raise ValueError(f"Not a monetary amount: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return result


@dataclass(frozen=True)
class ExecutionID:
    """Unique identifier for request tracing across log lines."""

    value: UUID

    @classmethod
    def generate(cls) -> "ExecutionID":
        """Generate a new ExecutionID."""
        return cls(value=uuid4())

    def __str__(self) -> str:
        """Return string representation."""
        return str(self.value)

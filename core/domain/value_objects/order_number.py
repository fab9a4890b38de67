"""Order number value object."""
import random
import re
import time
from dataclasses import dataclass

_PATTERN = re.compile(r"^ORD-\d{13,}-\d{1,4}$")


@dataclass(frozen=True)
class OrderNumber:
    """
    Human-readable order identifier.

    Format: ORD-<creation epoch millis>-<random 0..9999>
    Examples:
    - ORD-1736762400123-42
    - ORD-1736762400987-9051
    """
    value: str

    def __post_init__(self):
        if not self.value:
            raise ValueError("Order number cannot be empty")
        if not _PATTERN.match(self.value):
            raise ValueError(f"Invalid order number format: {self.value}")

    @classmethod
    def generate(cls) -> "OrderNumber":
        """Derive a new order number from the current time plus a random suffix."""
        millis = int(time.time() * 1000)
        return cls(value=f"ORD-{millis}-{random.randint(0, 9999)}")

    def __str__(self) -> str:
        return self.value

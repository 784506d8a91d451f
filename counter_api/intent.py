"""
Write intents and amount validation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .errors import ValidationError

UINT256_MAX = 2**256 - 1

AMOUNT_ERROR = "Amount must be a positive integer"


class Operation(str, Enum):
    """Counter write operations, valued by contract function name."""

    INC = "inc"
    INC_BY = "incBy"
    DEC = "dec"
    DEC_BY = "decBy"

    @property
    def takes_amount(self) -> bool:
        return self in (Operation.INC_BY, Operation.DEC_BY)

    @property
    def is_decrement(self) -> bool:
        return self in (Operation.DEC, Operation.DEC_BY)


def parse_amount(value: Any) -> int:
    """
    Validate a raw JSON amount.

    Accepts JSON integers and integral floats (3.0). Rejects booleans,
    strings, fractions, non-positive values and anything above uint256.

    Raises:
        ValidationError: If the amount is not a strictly positive integer
    """
    if isinstance(value, bool):
        raise ValidationError(AMOUNT_ERROR)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(AMOUNT_ERROR)
        value = int(value)
    if not isinstance(value, int):
        raise ValidationError(AMOUNT_ERROR)
    if value <= 0 or value > UINT256_MAX:
        raise ValidationError(AMOUNT_ERROR)
    return value


@dataclass(frozen=True)
class WriteIntent:
    """A single requested state mutation."""

    operation: Operation
    amount: Optional[int] = None

    def __post_init__(self) -> None:
        if self.operation.takes_amount:
            parse_amount(self.amount)
        elif self.amount is not None:
            raise ValidationError(f"{self.operation.value}() takes no amount")

    @property
    def args(self) -> list[int]:
        """Contract call arguments."""
        return [self.amount] if self.operation.takes_amount else []

    @classmethod
    def increment(cls, amount: Optional[int] = None) -> "WriteIntent":
        if amount is None:
            return cls(Operation.INC)
        return cls(Operation.INC_BY, amount)

    @classmethod
    def decrement(cls, amount: Optional[int] = None) -> "WriteIntent":
        if amount is None:
            return cls(Operation.DEC)
        return cls(Operation.DEC_BY, amount)

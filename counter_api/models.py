"""
Pydantic models for API requests and responses.

Response fields are camelCase on the wire. Integers that can exceed the
double-precision range (counter value, block number, amount) are sent as
decimal strings.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .errors import ValidationError
from .intent import parse_amount
from .lifecycle import ConfirmationRecord


class _Envelope(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Requests
# ============================================================================

class AmountRequest(BaseModel):
    """Body of /increment-by and /decrement-by."""

    amount: Any = Field(..., description="Strictly positive integer")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "amount": 5
                }
            ]
        }
    }

    @field_validator("amount", mode="before")
    @classmethod
    def _positive_integer(cls, value: Any) -> int:
        try:
            return parse_amount(value)
        except ValidationError as e:
            raise ValueError(e.message) from e


# ============================================================================
# Responses
# ============================================================================

class ValueResponse(_Envelope):
    """Current counter value."""

    success: bool = Field(True, description="Always true")
    value: str = Field(..., description="Counter value (decimal string)")


class WriteResponse(_Envelope):
    """A confirmed counter transaction."""

    success: bool = Field(True, description="Always true")
    transaction_hash: str = Field(..., description="Transaction hash (0x...)")
    block_number: str = Field(..., description="Inclusion block (decimal string)")
    status: str = Field(..., description="Receipt status")
    amount: Optional[str] = Field(None, description="Requested amount (decimal string)")

    @classmethod
    def from_record(cls, record: ConfirmationRecord, amount: Optional[int] = None) -> "WriteResponse":
        return cls(
            transaction_hash=record.transaction_hash,
            block_number=str(record.block_number),
            status=record.status.value,
            amount=str(amount) if amount is not None else None,
        )


class ErrorResponse(_Envelope):
    """Any failed request."""

    success: bool = Field(False, description="Always false")
    error: str = Field(..., description="Error message")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field("ok", description="Service status")

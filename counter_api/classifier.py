"""
Failure classification.

Maps an exception raised on the read or write path to an ErrorKind and
then to the client-facing CounterAPIError.

Rules are tried in order; the first that returns a kind wins. The
structured rule reads the panic code web3 decodes from a revert. The
substring rule matches revert message wording and breaks if the contract
or the client library rewords its errors; it stays as the fallback for
reverts that carry only a reason string.
"""

from dataclasses import dataclass
from typing import Callable, Iterator, Literal, Optional, Sequence

from web3.exceptions import ContractLogicError, ContractPanicError

from .errors import (
    ChainReadError,
    ChainWriteError,
    CounterAPIError,
    ErrorKind,
    TransactionReverted,
    Underflow,
)
from .intent import Operation

UNDERFLOW_MARKERS = ("cannot be decremented", "underflow")

# Solidity Panic(uint256) code for arithmetic underflow/overflow
PANIC_ARITHMETIC = 0x11
PANIC_SELECTOR = "4e487b71"


@dataclass(frozen=True)
class ErrorContext:
    """What the failing request was doing."""

    operation: Optional[Operation]
    path: Literal["read", "write"]
    amount: Optional[int] = None


Rule = Callable[[BaseException, ErrorContext], Optional[ErrorKind]]


def iter_causes(error: BaseException) -> Iterator[BaseException]:
    """The error followed by its __cause__/__context__ chain."""
    seen: set[int] = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def error_messages(error: BaseException) -> Iterator[str]:
    for exc in iter_causes(error):
        yield str(exc)
        message = getattr(exc, "message", None)
        if isinstance(message, str):
            yield message
        reason = getattr(exc, "reason", None)
        if isinstance(reason, str):
            yield reason


def _panic_code(data: object) -> Optional[int]:
    if not isinstance(data, str):
        return None
    hex_data = data.removeprefix("0x")
    if not hex_data.startswith(PANIC_SELECTOR) or len(hex_data) < 8 + 64:
        return None
    return int(hex_data[8:72], 16)


def panic_code_rule(error: BaseException, context: ErrorContext) -> Optional[ErrorKind]:
    """Arithmetic panic on a decrement is an underflow."""
    if context.path != "write" or context.operation is None or not context.operation.is_decrement:
        return None
    for exc in iter_causes(error):
        if isinstance(exc, ContractPanicError) and _panic_code(exc.data) == PANIC_ARITHMETIC:
            return ErrorKind.UNDERFLOW
    return None


def substring_rule(error: BaseException, context: ErrorContext) -> Optional[ErrorKind]:
    """Revert wording mentioning underflow on a decrement is an underflow."""
    if context.path != "write" or context.operation is None or not context.operation.is_decrement:
        return None
    for message in error_messages(error):
        lowered = message.lower()
        if any(marker in lowered for marker in UNDERFLOW_MARKERS):
            return ErrorKind.UNDERFLOW
    return None


DEFAULT_RULES: tuple[Rule, ...] = (panic_code_rule, substring_rule)


def _write_failure_message(context: ErrorContext) -> str:
    op = context.operation
    verb = "decrement" if op is not None and op.is_decrement else "increment"
    if op is not None and op.takes_amount:
        return f"Failed to {verb} counter by amount"
    return f"Failed to {verb} counter"


def _revert_reason(error: BaseException) -> Optional[str]:
    for exc in iter_causes(error):
        if isinstance(exc, TransactionReverted) and exc.reason:
            return exc.reason
        if isinstance(exc, ContractLogicError) and exc.message:
            return exc.message
    return None


class ErrorClassifier:
    """Pluggable classifier for chain failures."""

    def __init__(self, rules: Optional[Sequence[Rule]] = None):
        self.rules: tuple[Rule, ...] = tuple(rules) if rules is not None else DEFAULT_RULES

    def classify(self, error: BaseException, context: ErrorContext) -> ErrorKind:
        for rule in self.rules:
            kind = rule(error, context)
            if kind is not None:
                return kind
        return ErrorKind.CHAIN_READ if context.path == "read" else ErrorKind.CHAIN_WRITE

    def to_error(self, error: BaseException, context: ErrorContext) -> CounterAPIError:
        """Build the exception whose message and status reach the client."""
        kind = self.classify(error, context)

        if kind is ErrorKind.UNDERFLOW:
            if context.amount is not None:
                return Underflow(
                    f"Cannot decrement by {context.amount}: counter would go below zero"
                )
            return Underflow("Cannot decrement: counter is already at zero")

        if kind is ErrorKind.CHAIN_READ:
            return ChainReadError("Failed to read counter value")

        message = _write_failure_message(context)
        reason = _revert_reason(error)
        if reason:
            message = f"{message}: {reason}"
        return ChainWriteError(message)

"""
Error taxonomy for the Counter API.

Every error a request can end in is a CounterAPIError carrying its kind,
the HTTP status it maps to, and the message shown to the client.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Semantic error kinds."""

    CONFIG = "config"
    VALIDATION = "validation"
    CHAIN_READ = "chain_read"
    CHAIN_WRITE = "chain_write"
    UNDERFLOW = "underflow"


class CounterAPIError(Exception):
    """Base class for all Counter API errors."""

    kind: ErrorKind = ErrorKind.CHAIN_WRITE
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(CounterAPIError):
    """Missing or invalid configuration. Fatal at startup."""

    kind = ErrorKind.CONFIG
    status_code = 500


class ValidationError(CounterAPIError):
    """Request input rejected before contacting the chain."""

    kind = ErrorKind.VALIDATION
    status_code = 400


class ChainReadError(CounterAPIError):
    """A ledger query failed (unreachable node, reverted call)."""

    kind = ErrorKind.CHAIN_READ
    status_code = 500


class ChainWriteError(CounterAPIError):
    """Signing, simulation, broadcast or confirmation failed."""

    kind = ErrorKind.CHAIN_WRITE
    status_code = 500


class TransactionReverted(ChainWriteError):
    """
    The transaction was included in a block but the contract rejected it.

    Distinct from a submit-time failure: the transaction exists on-chain
    with a failed receipt.
    """

    def __init__(
        self,
        tx_hash: str,
        block_number: int,
        reason: Optional[str] = None,
    ):
        message = f"Transaction {tx_hash} reverted in block {block_number}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.tx_hash = tx_hash
        self.block_number = block_number
        self.reason = reason


class Underflow(CounterAPIError):
    """The contract refused to take the counter below zero."""

    kind = ErrorKind.UNDERFLOW
    status_code = 400

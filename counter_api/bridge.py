"""
Request-to-transaction bridge.

Runs one read or one write flow against the ledger and turns any failure
into a classified CounterAPIError. Within a write flow, submission always
completes before confirmation starts.
"""

from typing import Optional, Protocol

import structlog

from .classifier import ErrorClassifier, ErrorContext
from .errors import TransactionReverted
from .intent import WriteIntent
from .lifecycle import ConfirmationRecord

logger = structlog.get_logger()


class LedgerClient(Protocol):
    """Read and write capabilities the bridge needs from the chain."""

    async def block_number(self) -> int: ...

    async def read_counter(self) -> int: ...

    async def submit(self, intent: WriteIntent) -> str: ...

    async def revert_reason(self, intent: WriteIntent, block_number: int) -> Optional[str]: ...


class Confirmer(Protocol):
    async def confirm(self, tx_hash: str) -> ConfirmationRecord: ...


class CounterBridge:
    """Counter reads and writes with classified failures."""

    def __init__(
        self,
        client: LedgerClient,
        lifecycle: Confirmer,
        classifier: Optional[ErrorClassifier] = None,
    ):
        self.client = client
        self.lifecycle = lifecycle
        self.classifier = classifier or ErrorClassifier()

    async def read_value(self) -> int:
        """
        Current counter value.

        Raises:
            CounterAPIError: Classified read failure
        """
        try:
            return await self.client.read_counter()
        except Exception as e:
            context = ErrorContext(operation=None, path="read")
            error = self.classifier.to_error(e, context)
            logger.error("counter_read_failed", error=str(e), kind=error.kind.value)
            raise error from e

    async def execute(self, intent: WriteIntent) -> ConfirmationRecord:
        """
        Submit intent and wait for it to be mined.

        Returns the confirmation record of a successfully included transaction.

        Raises:
            CounterAPIError: Classified submit, confirmation or revert failure
        """
        try:
            head = await self.client.block_number()
            tx_hash = await self.client.submit(intent)
            record = await self.lifecycle.confirm(tx_hash)
            logger.debug(
                "counter_tx_mined",
                operation=intent.operation.value,
                tx_hash=tx_hash,
                submitted_at_block=head,
                block_number=record.block_number,
            )
            if record.block_number < head:
                logger.warning(
                    "counter_tx_behind_head",
                    tx_hash=tx_hash,
                    submitted_at_block=head,
                    block_number=record.block_number,
                )
            if not record.succeeded:
                reason = await self.client.revert_reason(intent, record.block_number)
                raise TransactionReverted(tx_hash, record.block_number, reason)
        except Exception as e:
            context = ErrorContext(
                operation=intent.operation,
                path="write",
                amount=intent.amount,
            )
            error = self.classifier.to_error(e, context)
            logger.error(
                "counter_write_failed",
                operation=intent.operation.value,
                amount=intent.amount,
                error=str(e),
                kind=error.kind.value,
            )
            raise error from e

        return record

"""
Transaction lifecycle: from broadcast hash to confirmation record.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog
from web3 import AsyncWeb3
from web3.exceptions import TimeExhausted

from .errors import ChainWriteError

logger = structlog.get_logger()


class InclusionStatus(str, Enum):
    """Receipt status of an included transaction."""

    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class ConfirmationRecord:
    """A transaction the node reported as included in a block."""

    transaction_hash: str
    block_number: int
    status: InclusionStatus

    @property
    def succeeded(self) -> bool:
        return self.status is InclusionStatus.SUCCESS

    @classmethod
    def from_receipt(cls, tx_hash: str, receipt: Any) -> "ConfirmationRecord":
        return cls(
            transaction_hash=tx_hash,
            block_number=int(receipt["blockNumber"]),
            status=InclusionStatus.SUCCESS if receipt["status"] == 1 else InclusionStatus.FAILURE,
        )


class TransactionLifecycle:
    """
    Waits for submitted transactions to be mined.

    The only timeout is the receipt-wait ceiling handed to web3.
    """

    def __init__(self, w3: AsyncWeb3, timeout: float = 120.0, poll_latency: float = 0.1):
        self.w3 = w3
        self.timeout = timeout
        self.poll_latency = poll_latency

    async def confirm(self, tx_hash: str) -> ConfirmationRecord:
        """
        Block until tx_hash is included and return its confirmation record.

        Raises:
            ChainWriteError: On receipt timeout or transport failure
        """
        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=self.timeout,
                poll_latency=self.poll_latency,
            )
        except TimeExhausted as e:
            raise ChainWriteError(
                f"Transaction {tx_hash} not mined within {self.timeout:g}s"
            ) from e
        except Exception as e:
            raise ChainWriteError(f"Failed to get receipt for {tx_hash}: {e}") from e

        record = ConfirmationRecord.from_receipt(tx_hash, receipt)

        if record.succeeded:
            logger.info(
                "counter_tx_confirmed",
                tx_hash=tx_hash,
                block_number=record.block_number,
                gas_used=receipt.get("gasUsed"),
            )
        else:
            logger.error(
                "counter_tx_reverted",
                tx_hash=tx_hash,
                block_number=record.block_number,
            )
        return record

"""
Shared fixtures: an in-memory Counter ledger standing in for the node.
"""

from typing import Optional

import pytest
from fastapi.testclient import TestClient
from web3.exceptions import ContractLogicError

from counter_api.bridge import CounterBridge
from counter_api.config import Settings
from counter_api.errors import ChainReadError, ChainWriteError
from counter_api.intent import WriteIntent
from counter_api.lifecycle import ConfirmationRecord, InclusionStatus
from counter_api.main import create_app

UNDERFLOW_REASON = "execution reverted: Counter: cannot be decremented below zero"


class FakeLedger:
    """
    Counter contract plus just enough chain to mine one tx per block.

    With simulate=False, reverting calls are still mined (failed receipt)
    instead of being rejected at pre-flight.
    """

    def __init__(self, value: int = 0, simulate: bool = True):
        self.value = value
        self.simulate = simulate
        self.block = 100
        self.submitted: list[WriteIntent] = []
        self.increments: list[int] = []
        self.decrements: list[int] = []
        self.receipts: dict[str, ConfirmationRecord] = {}
        self.read_error: Optional[Exception] = None
        self.submit_error: Optional[Exception] = None
        self.confirm_error: Optional[Exception] = None

    async def block_number(self) -> int:
        return self.block

    async def read_counter(self) -> int:
        if self.read_error:
            raise ChainReadError(f"Failed to read counter value: {self.read_error}") from self.read_error
        return self.value

    async def submit(self, intent: WriteIntent) -> str:
        if self.submit_error:
            raise ChainWriteError(f"Failed to submit: {self.submit_error}") from self.submit_error

        by = intent.amount or 1
        underflows = intent.operation.is_decrement and by > self.value
        if underflows and self.simulate:
            cause = ContractLogicError(UNDERFLOW_REASON)
            raise ChainWriteError(f"Failed to submit {intent.operation.value}(): {cause}") from cause

        self.submitted.append(intent)
        self.block += 1
        tx_hash = "0x" + f"{len(self.submitted):064x}"

        if underflows:
            status = InclusionStatus.FAILURE
        else:
            status = InclusionStatus.SUCCESS
            if intent.operation.is_decrement:
                self.value -= by
                self.decrements.append(by)
            else:
                self.value += by
                self.increments.append(by)

        self.receipts[tx_hash] = ConfirmationRecord(tx_hash, self.block, status)
        return tx_hash

    async def confirm(self, tx_hash: str) -> ConfirmationRecord:
        if self.confirm_error:
            raise ChainWriteError(f"Failed to get receipt: {self.confirm_error}") from self.confirm_error
        return self.receipts[tx_hash]

    async def revert_reason(self, intent: WriteIntent, block_number: int) -> Optional[str]:
        if intent.operation.is_decrement:
            return UNDERFLOW_REASON
        return None


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def bridge(ledger: FakeLedger) -> CounterBridge:
    return CounterBridge(ledger, ledger)


@pytest.fixture
def client(bridge: CounterBridge) -> TestClient:
    """Create test client."""
    return TestClient(create_app(settings=Settings(_env_file=None), bridge=bridge))

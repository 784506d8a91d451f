"""
EVM client for interacting with the Counter contract.
"""

import asyncio
from typing import Any, Optional

import structlog
from eth_account import Account
from web3 import AsyncWeb3, AsyncHTTPProvider, Web3
from web3.exceptions import ContractLogicError

from .config import ChainConfig
from .errors import ChainReadError, ChainWriteError
from .intent import WriteIntent

logger = structlog.get_logger()


class ChainClient:
    """
    Async client for the Counter contract.

    Holds the read capability (contract calls against the node) and the
    write capability (one local signing account). Submissions from the
    account are serialized so each gets the next nonce.
    """

    def __init__(self, config: ChainConfig, w3: Optional[AsyncWeb3] = None):
        self.config = config
        self.w3 = w3 or AsyncWeb3(AsyncHTTPProvider(config.rpc_url))
        self.account = Account.from_key(config.private_key)
        self.contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(config.contract_address),
            abi=config.abi,
        )
        self._submit_lock = asyncio.Lock()

    @property
    def address(self) -> str:
        """Get account address."""
        return self.account.address

    async def check_connectivity(self) -> bool:
        """Check if EVM RPC is reachable."""
        try:
            await self.w3.eth.block_number
            return True
        except Exception:
            return False

    async def block_number(self) -> int:
        """Current chain head."""
        try:
            return await self.w3.eth.block_number
        except Exception as e:
            raise ChainReadError(f"Failed to read block number: {e}") from e

    async def read_counter(self) -> int:
        """Call Counter.x() against the latest state."""
        try:
            return await self.contract.functions.x().call()
        except Exception as e:
            raise ChainReadError(f"Failed to read counter value: {e}") from e

    def _function(self, intent: WriteIntent) -> Any:
        return getattr(self.contract.functions, intent.operation.value)(*intent.args)

    async def submit(self, intent: WriteIntent) -> str:
        """
        Simulate, sign and broadcast the intent's contract call.

        Returns the transaction hash without waiting for inclusion.

        Raises:
            ChainWriteError: If simulation, signing or broadcast fails
        """
        fn = self._function(intent)

        try:
            async with self._submit_lock:
                # Pre-flight: surfaces contract reverts before spending gas
                await fn.call({"from": self.address})

                nonce = await self.w3.eth.get_transaction_count(self.address, "pending")
                tx = await fn.build_transaction(
                    {
                        "from": self.address,
                        "nonce": nonce,
                        "chainId": self.config.chain_id,
                    }
                )
                signed = self.account.sign_transaction(tx)
                tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            raise ChainWriteError(f"Failed to submit {intent.operation.value}(): {e}") from e

        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.info(
            "counter_tx_sent",
            tx_hash=tx_hash_hex,
            operation=intent.operation.value,
            amount=intent.amount,
            nonce=nonce,
        )
        return tx_hash_hex

    async def revert_reason(self, intent: WriteIntent, block_number: int) -> Optional[str]:
        """
        Replay the intent's call on the state before block_number.

        Returns the contract's revert message, or None if the replay
        succeeds or fails for a non-contract reason.
        """
        fn = self._function(intent)
        try:
            await fn.call({"from": self.address}, block_identifier=max(block_number - 1, 0))
        except ContractLogicError as e:
            return e.message or str(e)
        except Exception as e:
            logger.warning("revert_replay_failed", operation=intent.operation.value, error=str(e))
        return None

"""
Configuration for Counter API.
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from eth_account import Account
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from web3 import Web3

from .abi import resolve_abi
from .deployments import lookup_counter_address
from .errors import ConfigError


class Network(str, Enum):
    """Supported networks."""

    SEPOLIA = "sepolia"
    LOCALHOST = "localhost"

    @property
    def chain_id(self) -> int:
        return {Network.SEPOLIA: 11155111, Network.LOCALHOST: 31337}[self]


class Settings(BaseSettings):
    """
    API configuration settings.

    All settings can be overridden via environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # API Server
    host: str = Field(default="127.0.0.1", description="API host", alias="HOST")
    port: int = Field(default=3000, description="API port", validation_alias="PORT")
    debug: bool = Field(default=False, description="Enable debug mode (auto-reload)")
    allowed_origins: list[str] = Field(
        default=["*"],
        description="CORS allowed origins",
    )

    # Network
    network: Network = Field(
        default=Network.SEPOLIA,
        description="Target network: sepolia or localhost",
        alias="NETWORK",
    )
    rpc_url: Optional[str] = Field(
        default=None,
        description="EVM RPC URL",
        validation_alias=AliasChoices("SEPOLIA_RPC_URL", "RPC_URL", "rpc_url"),
    )
    private_key: Optional[str] = Field(
        default=None,
        description="Private key of the account that signs counter transactions",
        validation_alias=AliasChoices("SEPOLIA_PRIVATE_KEY", "PRIVATE_KEY", "private_key"),
    )
    receipt_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="How long to wait for a transaction receipt",
    )

    # Contract
    contract_address: Optional[str] = Field(
        default=None,
        description="Deployed Counter contract address",
        alias="CONTRACT_ADDRESS",
    )
    deployments_file: Path = Field(
        default=Path("deployments.json"),
        description="Deployments file used when CONTRACT_ADDRESS is not set",
    )
    counter_artifact: Optional[Path] = Field(
        default=None,
        description="Compiled Counter artifact to take the ABI from",
    )

    @field_validator("network", mode="before")
    @classmethod
    def _lowercase_network(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def resolve_contract_address(self) -> Optional[str]:
        """CONTRACT_ADDRESS, falling back to the deployments file."""
        if self.contract_address:
            return self.contract_address
        return lookup_counter_address(self.deployments_file, self.network.value)

    def chain_config(self) -> "ChainConfig":
        """
        Validate and freeze everything needed to talk to the chain.

        Raises:
            ConfigError: If a required value is missing or malformed
        """
        missing = []
        if not self.rpc_url:
            missing.append("RPC_URL (or SEPOLIA_RPC_URL)")
        if not self.private_key:
            missing.append("PRIVATE_KEY (or SEPOLIA_PRIVATE_KEY)")
        contract_address = self.resolve_contract_address()
        if not contract_address:
            missing.append("CONTRACT_ADDRESS")
        if missing:
            raise ConfigError(f"{', '.join(missing)} must be set in .env file")

        if not Web3.is_address(contract_address):
            raise ConfigError(f"CONTRACT_ADDRESS is not a valid address: {contract_address}")

        try:
            Account.from_key(self.private_key)
        except Exception as e:
            raise ConfigError("PRIVATE_KEY is not a valid private key") from e

        return ChainConfig(
            network=self.network,
            rpc_url=self.rpc_url or "",
            private_key=self.private_key or "",
            contract_address=Web3.to_checksum_address(contract_address),
            abi=resolve_abi(self.counter_artifact),
            receipt_timeout_seconds=self.receipt_timeout_seconds,
        )


@dataclass(frozen=True)
class ChainConfig:
    """Validated, immutable chain configuration."""

    network: Network
    rpc_url: str
    private_key: str
    contract_address: str
    abi: list[dict[str, Any]]
    receipt_timeout_seconds: float = 120.0

    @property
    def chain_id(self) -> int:
        return self.network.chain_id


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

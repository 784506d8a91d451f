"""
Deployed contract address bookkeeping.

Hardhat Ignition writes one directory per chain:

    ignition/deployments/chain-<id>/deployed_addresses.json

This module collects the Counter address from each of them into a single
deployments file keyed by network name:

    {"counter": {"sepolia": "0x...", "localhost": "0x..."}}
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import structlog

logger = structlog.get_logger()

COUNTER_FUTURE_ID = "CounterModule#Counter"

# Chain IDs to network names
CHAIN_ID_TO_NETWORK: dict[int, str] = {
    11155111: "sepolia",
    31337: "localhost",
    1: "mainnet",
}


@dataclass
class Deployment:
    """A Counter deployment on one chain."""

    network: str
    address: str
    chain_id: int


def network_name(chain_id: int) -> str:
    return CHAIN_ID_TO_NETWORK.get(chain_id, f"chain-{chain_id}")


def scan_ignition_deployments(deployments_dir: Path) -> list[Deployment]:
    """
    Collect Counter addresses from an Ignition deployments directory.

    Chain directories without a readable Counter entry are skipped.

    Raises:
        FileNotFoundError: If the deployments directory does not exist
    """
    if not deployments_dir.is_dir():
        raise FileNotFoundError(f"Ignition deployments directory not found: {deployments_dir}")

    deployments: list[Deployment] = []

    for chain_dir in sorted(deployments_dir.iterdir()):
        if not chain_dir.is_dir() or not chain_dir.name.startswith("chain-"):
            continue
        try:
            chain_id = int(chain_dir.name.removeprefix("chain-"))
        except ValueError:
            continue

        addresses_path = chain_dir / "deployed_addresses.json"
        if not addresses_path.exists():
            continue

        network = network_name(chain_id)
        try:
            addresses = json.loads(addresses_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("deployment_unreadable", network=network, error=str(e))
            continue

        address = addresses.get(COUNTER_FUTURE_ID) if isinstance(addresses, dict) else None
        if address:
            deployments.append(Deployment(network=network, address=address, chain_id=chain_id))

    return deployments


def write_deployments_file(deployments: list[Deployment], output: Path) -> None:
    """Write {"counter": {network: address}} to output."""
    data = {"counter": {d.network: d.address for d in deployments}}
    output.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    logger.info("deployments_written", path=str(output), count=len(deployments))


def lookup_counter_address(deployments_file: Path, network: str) -> Optional[str]:
    """Counter address for network from a deployments file, if recorded."""
    if not deployments_file.is_file():
        return None
    try:
        data = json.loads(deployments_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("deployments_file_unreadable", path=str(deployments_file), error=str(e))
        return None
    counter = data.get("counter") if isinstance(data, dict) else None
    if not isinstance(counter, dict):
        return None
    return counter.get(network)

"""
Counter contract interface.

The built-in ABI covers what the bridge calls. A compiled Hardhat artifact
(artifacts/contracts/Counter.sol/Counter.json) can be used instead.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from .errors import ConfigError


COUNTER_ABI: list[dict[str, Any]] = [
    {
        "inputs": [],
        "name": "x",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "inc",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [{"name": "by", "type": "uint256"}],
        "name": "incBy",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "dec",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [{"name": "by", "type": "uint256"}],
        "name": "decBy",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [{"indexed": False, "name": "by", "type": "uint256"}],
        "name": "Increment",
        "type": "event",
    },
    {
        "anonymous": False,
        "inputs": [{"indexed": False, "name": "by", "type": "uint256"}],
        "name": "Decrement",
        "type": "event",
    },
]

REQUIRED_FUNCTIONS = ("x", "inc", "incBy", "dec", "decBy")


@lru_cache(maxsize=8)
def _read_artifact(path: Path) -> tuple[str, ...]:
    with path.open("r", encoding="utf-8") as f:
        artifact = json.load(f)
    if not isinstance(artifact, dict) or "abi" not in artifact:
        raise ConfigError(f"Not a compiled contract artifact (no 'abi' key): {path}")
    # Cache hashable JSON strings; callers get fresh dicts.
    return tuple(json.dumps(entry) for entry in artifact["abi"])


def load_artifact_abi(path: Path) -> list[dict[str, Any]]:
    """
    Load the ABI from a compiled contract artifact.

    Raises:
        ConfigError: If the file is missing, unreadable, or lacks a counter function
    """
    resolved = path.expanduser().resolve()
    if not resolved.is_file():
        raise ConfigError(f"Contract artifact not found: {path}")
    try:
        abi = [json.loads(entry) for entry in _read_artifact(resolved)]
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read contract artifact {path}: {e}") from e

    names = {entry.get("name") for entry in abi if entry.get("type") == "function"}
    missing = [fn for fn in REQUIRED_FUNCTIONS if fn not in names]
    if missing:
        raise ConfigError(
            f"Contract artifact {path} is missing functions: {', '.join(missing)}"
        )
    return abi


def resolve_abi(artifact_path: Path | None) -> list[dict[str, Any]]:
    """Artifact ABI if configured, otherwise the built-in one."""
    if artifact_path is None:
        return COUNTER_ABI
    return load_artifact_abi(artifact_path)

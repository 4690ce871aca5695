"""
Network configuration for the bridge bootstrapper.

Contains the default RPC endpoints and chain ids for the two layers the
bootstrapper talks to: the settlement chain (L1) and the appchain (L2).
"""

import os
from dataclasses import dataclass
from typing import Any


# =============================================================================
# CHAIN CONFIGURATIONS
# =============================================================================

CHAINS: dict[str, dict[str, Any]] = {
    "anvil": {
        "chain_id": 31337,
        "name": "Anvil (local)",
        "layer": "l1",
        "currency": "ETH",
        "block_time": 1,
        "rpc_urls": [
            "http://127.0.0.1:8545",
        ],
    },
    "sepolia": {
        "chain_id": 11155111,
        "name": "Sepolia",
        "layer": "l1",
        "currency": "ETH",
        "block_time": 12,
        "rpc_urls": [
            "https://ethereum-sepolia-rpc.publicnode.com",
            "https://rpc.sepolia.org",
        ],
    },
    "madara_devnet": {
        # 'MADARA' as a short string
        "chain_id": 0x4D4144415241,
        "name": "Madara devnet",
        "layer": "l2",
        "currency": "ETH",
        "block_time": 6,
        "rpc_urls": [
            "http://127.0.0.1:9944",
        ],
    },
}

# Chain ID to name mapping
CHAIN_ID_TO_NAME: dict[int, str] = {
    config["chain_id"]: name for name, config in CHAINS.items()
}


@dataclass(frozen=True)
class ChainEndpoint:
    """RPC url and chain id of one layer. Immutable once built."""
    rpc_url: str
    chain_id: int | None = None

    def __post_init__(self):
        if not self.rpc_url:
            raise ValueError("ChainEndpoint requires a non-empty rpc_url")


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_chain_config(chain: str | int | None = None) -> dict[str, Any]:
    """Get configuration for a specific chain.

    Args:
        chain: Chain name (e.g., 'anvil', 'madara_devnet') or chain ID.
               If None, uses L1_CHAIN environment variable or defaults to 'anvil'.

    Returns:
        Chain configuration dictionary.

    Raises:
        ValueError: If chain is not supported.
    """
    if chain is None:
        chain = os.getenv("L1_CHAIN", "anvil").lower()

    if isinstance(chain, int):
        name = CHAIN_ID_TO_NAME.get(chain)
        if name is None:
            raise ValueError(f"Unsupported chain ID: {chain}")
        chain = name

    chain = chain.lower()
    if chain not in CHAINS:
        raise ValueError(f"Unsupported chain: {chain}. Supported: {list(CHAINS.keys())}")

    return CHAINS[chain]


def get_rpc_url(chain: str | int | None = None) -> str:
    """Get the primary RPC URL for a chain."""
    config = get_chain_config(chain)
    return config["rpc_urls"][0]


def get_chain_id(chain: str | None = None) -> int:
    """Get the chain ID for a chain name."""
    config = get_chain_config(chain)
    return config["chain_id"]


def endpoint_for(chain: str | int, rpc_url: str | None = None) -> ChainEndpoint:
    """Build a ChainEndpoint for a known chain, optionally overriding its url."""
    config = get_chain_config(chain)
    return ChainEndpoint(rpc_url=rpc_url or config["rpc_urls"][0], chain_id=config["chain_id"])


# Network timeouts
RPC_TIMEOUT: int = 30  # seconds

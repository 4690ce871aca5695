"""
Contract ABI package for the bridge bootstrapper.

Contains the L1 contract ABIs organized by contract family.
"""

from .erc20 import ERC20_ABI
from .proxy import PROXY_ABI, INITIALIZE_ABI
from .core_contract import CORE_CONTRACT_ABI, CORE_CONTRACT_PROXY_ABI
from .bridge import (
    ETH_BRIDGE_ABI,
    ETH_BRIDGE_UPGRADED_ABI,
    TOKEN_BRIDGE_ABI,
    STARKGATE_MANAGER_ABI,
    STARKGATE_REGISTRY_ABI,
)

__all__ = [
    # ERC20
    'ERC20_ABI',

    # Proxy
    'PROXY_ABI',
    'INITIALIZE_ABI',

    # Core contract
    'CORE_CONTRACT_ABI',
    'CORE_CONTRACT_PROXY_ABI',

    # Starkgate
    'ETH_BRIDGE_ABI',
    'ETH_BRIDGE_UPGRADED_ABI',
    'TOKEN_BRIDGE_ABI',
    'STARKGATE_MANAGER_ABI',
    'STARKGATE_REGISTRY_ABI',
]

"""
Configuration package for the bridge bootstrapper.

Settings, network endpoints, artifact locations, constants and the L1 ABIs.
"""

from .network import (
    CHAINS,
    CHAIN_ID_TO_NAME,
    ChainEndpoint,
    get_chain_config,
    get_chain_id,
    get_rpc_url,
    endpoint_for,
)

from .settings import BootstrapConfig

from .artifacts import (
    ArtifactStore,
    L1Artifact,
    L2LegacyArtifact,
    L2SierraArtifact,
)

from .logging_config import (
    setup_logger,
    log_step_event,
    get_bootstrap_logger,
)

# --- ABI imports ---
from .abis import (
    ERC20_ABI,
    PROXY_ABI,
    CORE_CONTRACT_ABI,
    ETH_BRIDGE_ABI,
    ETH_BRIDGE_UPGRADED_ABI,
    TOKEN_BRIDGE_ABI,
    STARKGATE_MANAGER_ABI,
    STARKGATE_REGISTRY_ABI,
)
# --- End ABI imports ---

__all__ = [
    # Network
    'CHAINS',
    'CHAIN_ID_TO_NAME',
    'ChainEndpoint',
    'get_chain_config',
    'get_chain_id',
    'get_rpc_url',
    'endpoint_for',

    # Settings
    'BootstrapConfig',

    # Artifacts
    'ArtifactStore',
    'L1Artifact',
    'L2LegacyArtifact',
    'L2SierraArtifact',

    # Logging
    'setup_logger',
    'log_step_event',
    'get_bootstrap_logger',

    # ABIs
    'ERC20_ABI',
    'PROXY_ABI',
    'CORE_CONTRACT_ABI',
    'ETH_BRIDGE_ABI',
    'ETH_BRIDGE_UPGRADED_ABI',
    'TOKEN_BRIDGE_ABI',
    'STARKGATE_MANAGER_ABI',
    'STARKGATE_REGISTRY_ABI',
]

"""
Constants shared by the deployment pipelines.

Artifact file names are relative to the configured artifacts directory.
"""

# -----------------------------------------------------------------------------
# L1 artifacts (forge/hardhat style JSON: {"abi": [...], "bytecode": ...})
# -----------------------------------------------------------------------------
L1_PROXY = "l1/Proxy.json"
L1_UNSAFE_PROXY = "l1/UnsafeProxy.json"
L1_STARKNET_SOVEREIGN = "l1/StarknetSovereign.json"
L1_STARKNET_VALIDITY = "l1/Starknet.json"
L1_ETH_BRIDGE = "l1/StarknetEthBridge.json"
L1_STARKGATE_MANAGER = "l1/StarkgateManager.json"
L1_STARKGATE_REGISTRY = "l1/StarkgateRegistry.json"
L1_TOKEN_BRIDGE = "l1/StarknetTokenBridge.json"
L1_TEST_ERC20 = "l1/DaiERC20.json"
L1_ETH_BRIDGE_UPGRADED = "l1/StarknetEthBridgeUpgraded.json"
L1_ETH_BRIDGE_EIC = "l1/EicEthBridge.json"

# -----------------------------------------------------------------------------
# L2 artifacts
# -----------------------------------------------------------------------------
PROXY_LEGACY_PATH = "l2/proxy_legacy.json"
STARKGATE_PROXY_PATH = "l2/proxy_starkgate.json"
ERC20_LEGACY_PATH = "l2/erc20_legacy.json"
LEGACY_BRIDGE_PATH = "l2/legacy_token_bridge.json"
OZ_ACCOUNT_PATH = "l2/OpenzeppelinAccount.json"
UDC_PATH = "l2/udc.json"
ERC20_SIERRA_PATH = "l2/erc20.sierra.json"
ERC20_CASM_PATH = "l2/erc20.casm.json"
TOKEN_BRIDGE_SIERRA_PATH = "l2/token_bridge.sierra.json"
TOKEN_BRIDGE_CASM_PATH = "l2/token_bridge.casm.json"
ARGENT_SIERRA_PATH = "l2/argent_account.sierra.json"
ARGENT_CASM_PATH = "l2/argent_account.casm.json"
BRAAVOS_SIERRA_PATH = "l2/braavos_account.sierra.json"
BRAAVOS_CASM_PATH = "l2/braavos_account.casm.json"
EIC_ETH_TOKEN_SIERRA_PATH = "l2/eic_eth_token.sierra.json"
EIC_ETH_TOKEN_CASM_PATH = "l2/eic_eth_token.casm.json"
NEW_ETH_TOKEN_SIERRA_PATH = "l2/eth_token_cairo_one.sierra.json"
NEW_ETH_TOKEN_CASM_PATH = "l2/eth_token_cairo_one.casm.json"
EIC_ETH_BRIDGE_SIERRA_PATH = "l2/eic_eth_bridge.sierra.json"
EIC_ETH_BRIDGE_CASM_PATH = "l2/eic_eth_bridge.casm.json"
NEW_ETH_BRIDGE_SIERRA_PATH = "l2/eth_bridge_cairo_one.sierra.json"
NEW_ETH_BRIDGE_CASM_PATH = "l2/eth_bridge_cairo_one.casm.json"

# -----------------------------------------------------------------------------
# Transaction parameters
# -----------------------------------------------------------------------------
MAX_FEE_OVERRIDE = 0x100000
L1_GAS_FALLBACK = 6_000_000
L1_GAS_BUFFER = 1.2  # 20% on top of estimate_gas

# -----------------------------------------------------------------------------
# Bridge parameters
# -----------------------------------------------------------------------------
ETH_TOKEN_PROXY_SALT = 0x322C2610264639F6B2CEE681AC53FA65C37E187EA24292D1B21D859C55E1A78
ETH_BRIDGE_PROXY_SALT = 0xABCDABCDABCD
ETH_TOKEN_NAME = "Ether"
ETH_TOKEN_SYMBOL = "ETH"
ETH_TOKEN_DECIMALS = 18
MAX_TOTAL_BALANCE = 10000000000000000000000000000000000000000
MAX_DEPOSIT = 10000000000000000000000000000000000000000
TOKEN_ENROLL_FEE = 100_000_000_000_000  # 1e14 wei
ETH_DEPOSIT_FEE = 1000
TOKEN_DEPOSIT_FEE = 100_000_000_000_000
TOKEN_APPROVE_AMOUNT = 100_000_000

# Native balances are compared in whole ether to absorb gas fees.
NATIVE_UNIT = 10**18

# Name under which the UDC-style deployer emits the new address.
CONTRACT_DEPLOYED_EVENT = "ContractDeployed"

# -----------------------------------------------------------------------------
# Upgrade parameters
# -----------------------------------------------------------------------------
# Constructor values of the Cairo 1 ETH token implementation. The proxy keeps
# its own storage, so these only live in the implementation contract.
UPGRADE_TOKEN_PLACEHOLDER_NAME = 0xEEE
UPGRADE_TOKEN_PLACEHOLDER_SYMBOL = 0xEEEE
UPGRADE_TOKEN_PLACEHOLDER_DECIMALS = 6
# Cairo Option::None for the eic_data of replace_to / add_new_implementation
NO_EIC_DATA = 1
# Token key of native ETH in the upgraded (multi token) L1 bridge
L1_ETH_TOKEN_KEY = "0x0000000000000000000000000000000000455448"
UPGRADED_MAX_TOTAL_BALANCE = 10_000_000_000_000_000_000_000_000

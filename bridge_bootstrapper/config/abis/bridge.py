"""
Starkgate bridge interface ABIs.

- ETH_BRIDGE_ABI: legacy StarknetEthBridge (native asset)
- TOKEN_BRIDGE_ABI: StarknetTokenBridge (multi token, starkgate v2)
- STARKGATE_MANAGER_ABI: token enrolment entry point
- ETH_BRIDGE_UPGRADED_ABI: StarknetEthBridge after the L1 upgrade
"""

from .proxy import INITIALIZE_ABI, PROXY_ABI

_ROLES_ABI = [
    {"inputs": [{"name": "account", "type": "address"}], "name": "registerAppGovernor", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [{"name": "account", "type": "address"}], "name": "registerAppRoleAdmin", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [{"name": "account", "type": "address"}], "name": "registerSecurityAdmin", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [{"name": "account", "type": "address"}], "name": "registerSecurityAgent", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
]

ETH_BRIDGE_ABI = INITIALIZE_ABI + PROXY_ABI + [
    {"inputs": [{"name": "maxTotalBalance", "type": "uint256"}], "name": "setMaxTotalBalance", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [{"name": "maxDeposit", "type": "uint256"}], "name": "setMaxDeposit", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [{"name": "l2TokenBridge", "type": "uint256"}], "name": "setL2TokenBridge", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [{"name": "amount", "type": "uint256"}, {"name": "l2Recipient", "type": "uint256"}], "name": "deposit", "outputs": [], "stateMutability": "payable", "type": "function"},
    {"inputs": [{"name": "amount", "type": "uint256"}, {"name": "recipient", "type": "address"}], "name": "withdraw", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
]

TOKEN_BRIDGE_ABI = INITIALIZE_ABI + PROXY_ABI + _ROLES_ABI + [
    {"inputs": [{"name": "l2TokenBridge", "type": "uint256"}], "name": "setL2TokenBridge", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [{"name": "token", "type": "address"}, {"name": "amount", "type": "uint256"}, {"name": "l2Recipient", "type": "uint256"}], "name": "deposit", "outputs": [], "stateMutability": "payable", "type": "function"},
    {"inputs": [{"name": "token", "type": "address"}, {"name": "amount", "type": "uint256"}, {"name": "recipient", "type": "address"}], "name": "withdraw", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
]

STARKGATE_MANAGER_ABI = INITIALIZE_ABI + PROXY_ABI + _ROLES_ABI + [
    {"inputs": [{"name": "token", "type": "address"}], "name": "enrollTokenBridge", "outputs": [], "stateMutability": "payable", "type": "function"},
]

STARKGATE_REGISTRY_ABI = INITIALIZE_ABI + PROXY_ABI + _ROLES_ABI

# Multi token StarknetEthBridge installed by the L1 bridge upgrade
ETH_BRIDGE_UPGRADED_ABI = PROXY_ABI + [
    {"inputs": [{"name": "token", "type": "address"}, {"name": "maxTotalBalance", "type": "uint256"}], "name": "setMaxTotalBalance", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
]

"""
Starknet core contract (messaging contract) interface ABI.

Shared by the sovereign and the validity variants.
"""

from .proxy import INITIALIZE_ABI, PROXY_ABI

CORE_CONTRACT_ABI = INITIALIZE_ABI + [
    {"inputs": [{"name": "newOperator", "type": "address"}], "name": "registerOperator", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [{"name": "newGovernor", "type": "address"}], "name": "starknetNominateNewGovernor", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [{"name": "user", "type": "address"}], "name": "isOperator", "outputs": [{"name": "", "type": "bool"}], "stateMutability": "view", "type": "function"},
]

# Calls that go to the proxy in front of the core contract.
CORE_CONTRACT_PROXY_ABI = CORE_CONTRACT_ABI + PROXY_ABI

"""
Upgradeable proxy interface ABI.

Covers the governed (safe) proxy: implementation registration, upgrade and
governance nomination. The unsafe proxy is only ever called through the
implementation ABI.
"""

PROXY_ABI = [
    {"inputs": [{"name": "newImplementation", "type": "address"}, {"name": "data", "type": "bytes"}, {"name": "finalize", "type": "bool"}], "name": "addImplementation", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [{"name": "newImplementation", "type": "address"}, {"name": "data", "type": "bytes"}, {"name": "finalize", "type": "bool"}], "name": "upgradeTo", "outputs": [], "stateMutability": "payable", "type": "function"},
    {"inputs": [{"name": "newGovernor", "type": "address"}], "name": "proxyNominateNewGovernor", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
]

# Every proxied implementation exposes initialize(bytes) for the unsafe path.
INITIALIZE_ABI = [
    {"inputs": [{"name": "data", "type": "bytes"}], "name": "initialize", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
]

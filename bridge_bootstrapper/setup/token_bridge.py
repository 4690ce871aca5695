"""
ERC20 bridge pair (starkgate v2): StarkgateManager, StarkgateRegistry and
StarknetTokenBridge on L1, the Cairo 1 token bridge on L2, plus a DAI-style
test token enrolled once the pair is wired.

Phases
------
L1_CONTRACTS_DEPLOYED   manager, registry, bridge (behind proxies), test token
L2_CONTRACTS_DEPLOYED   erc20 + token_bridge declarations, L2 bridge
L1_INITIALIZED          initialize or add/upgrade, then L1 role registration
L2_INITIALIZED          L2 roles and token governance
L1_BRIDGE_CONFIGURED    L1 bridge -> L2 bridge
L2_BRIDGE_CONFIGURED    L2 erc20 class hash and L2 bridge -> L1 bridge
READY                   test token enrolled and its L2 twin resolved
"""
from __future__ import annotations

import logging

from eth_utils import to_checksum_address

from ..config.abis import STARKGATE_MANAGER_ABI, STARKGATE_REGISTRY_ABI, TOKEN_BRIDGE_ABI
from ..config.constants import (
    ERC20_CASM_PATH,
    ERC20_SIERRA_PATH,
    L1_STARKGATE_MANAGER,
    L1_STARKGATE_REGISTRY,
    L1_TEST_ERC20,
    L1_TOKEN_BRIDGE,
    TOKEN_BRIDGE_CASM_PATH,
    TOKEN_BRIDGE_SIERRA_PATH,
    TOKEN_ENROLL_FEE,
)
from ..helpers.felt import encode_words, l1_address_to_felt, random_salt
from ..helpers.signer import Layer
from . import l1_proxy
from .context import BootstrapContext
from .core_contract import CORE_CONTRACT_KEY
from .sequencer import AddressBook, BridgePhase, DeployedContractRef, WorkflowStep

logger = logging.getLogger(__name__)

MANAGER_KEY = "ERC20_l1_manager_address"
REGISTRY_KEY = "ERC20_l1_registry_address"
L1_BRIDGE_KEY = "ERC20_l1_bridge_address"
L1_TOKEN_KEY = "ERC20_l1_token_address"
L2_BRIDGE_KEY = "ERC20_l2_bridge_address"
L2_TOKEN_KEY = "ERC20_l2_token_address_temp_test"
ERC20_CLASS_KEY = "erc20_cairo_one_class_hash"
L2_BRIDGE_CLASS_KEY = "L2_token_bridge_class_hash"

_IMPL = "_implementation"

# (book key, abi, label)
_L1_CONTRACTS = (
    (MANAGER_KEY, STARKGATE_MANAGER_ABI, "starkgate manager"),
    (REGISTRY_KEY, STARKGATE_REGISTRY_ABI, "starkgate registry"),
    (L1_BRIDGE_KEY, TOKEN_BRIDGE_ABI, "token bridge"),
)


def token_bridge_init_data(book: AddressBook) -> dict[str, bytes]:
    """Initialization payload of each L1 contract, keyed like the address book."""
    manager = book[MANAGER_KEY].hex
    registry = book[REGISTRY_KEY].hex
    bridge = book[L1_BRIDGE_KEY].hex
    messaging = book[CORE_CONTRACT_KEY].hex
    return {
        MANAGER_KEY: encode_words(0, registry, bridge),
        REGISTRY_KEY: encode_words(0, manager),
        L1_BRIDGE_KEY: encode_words(0, manager, messaging),
    }


def build_token_bridge_steps(ctx: BootstrapContext) -> list[WorkflowStep]:
    config = ctx.config
    P = BridgePhase
    l1_governor = to_checksum_address(config.l1_deployer_address)
    l1_multisig = to_checksum_address(config.l1_multisig_address)

    def _deploy_step(key: str, artifact: str, label: str) -> WorkflowStep:
        def deploy(book):
            implementation, proxy = l1_proxy.deploy_behind_proxy(ctx, artifact, label)
            return {
                key: DeployedContractRef(proxy, Layer.L1),
                key + _IMPL: DeployedContractRef(implementation, Layer.L1),
            }

        return WorkflowStep(f"deploy_{label.replace(' ', '_')}", deploy, phase=P.L1_CONTRACTS_DEPLOYED)

    def deploy_test_token(book):
        address = ctx.l1.deploy(ctx.artifacts.l1(L1_TEST_ERC20), label="deploy test ERC20")
        return {L1_TOKEN_KEY: DeployedContractRef(address, Layer.L1)}

    def declare_erc20(book):
        class_hash = ctx.l2.declare_sierra(ctx.artifacts.l2_sierra(ERC20_SIERRA_PATH, ERC20_CASM_PATH), label="declare erc20")
        ctx.pause_between_declarations()
        return {ERC20_CLASS_KEY: class_hash}

    def declare_token_bridge(book):
        artifact = ctx.artifacts.l2_sierra(TOKEN_BRIDGE_SIERRA_PATH, TOKEN_BRIDGE_CASM_PATH)
        class_hash = ctx.l2.declare_sierra(artifact, label="declare token_bridge")
        ctx.pause_between_declarations()
        return {L2_BRIDGE_CLASS_KEY: class_hash}

    def deploy_l2_token_bridge(book):
        class_hash = book[L2_BRIDGE_CLASS_KEY]
        address = ctx.l2.deploy_via_udc(ctx.l2.address, [class_hash, random_salt(), 0, 1, 0], label="deploy L2 token bridge")
        logger.info(f"L2 token bridge at {hex(address)}")
        return {L2_BRIDGE_KEY: DeployedContractRef(address, Layer.L2, class_hash)}

    def initialize_token_bridge(book):
        init_data = token_bridge_init_data(book)
        for key, _, label in _L1_CONTRACTS:
            l1_proxy.initialize(ctx, book[key].hex, init_data[key], label)

    def add_implementation_token_bridge(book):
        init_data = token_bridge_init_data(book)
        for key, _, label in _L1_CONTRACTS:
            l1_proxy.add_implementation(ctx, book[key].hex, book[key + _IMPL].hex, init_data[key], label)

    def upgrade_to_token_bridge(book):
        init_data = token_bridge_init_data(book)
        for key, _, label in _L1_CONTRACTS:
            l1_proxy.upgrade_to(ctx, book[key].hex, book[key + _IMPL].hex, init_data[key], label)

    def _register(book, key: str, abi: list, method: str, account: str, label: str) -> None:
        ctx.l1.invoke(book[key].hex, method, [account], abi=abi, label=f"{label} {method}")

    def register_l1_bridge_roles(book):
        if ctx.dev:
            methods = ("registerAppRoleAdmin", "registerAppGovernor")
        else:
            methods = ("registerAppGovernor", "registerAppRoleAdmin", "registerSecurityAdmin", "registerSecurityAgent")
        for method in methods:
            _register(book, L1_BRIDGE_KEY, TOKEN_BRIDGE_ABI, method, l1_governor, "token bridge")

    def register_multisig_roles(book):
        for method in ("registerAppGovernor", "registerAppRoleAdmin"):
            for key, abi, label in (_L1_CONTRACTS[2], _L1_CONTRACTS[0], _L1_CONTRACTS[1]):
                _register(book, key, abi, method, l1_multisig, label)

    def initialize_l2_token_bridge(book):
        bridge = book[L2_BRIDGE_KEY].address
        for method in ("register_app_role_admin", "register_app_governor", "set_l2_token_governance"):
            ctx.l2.invoke(bridge, method, [ctx.l2.address], label=f"L2 token bridge {method}")

    def configure_l1_token_bridge(book):
        ctx.l1.invoke(
            book[L1_BRIDGE_KEY].hex,
            "setL2TokenBridge",
            [book[L2_BRIDGE_KEY].address],
            abi=TOKEN_BRIDGE_ABI,
            label="token bridge setL2TokenBridge",
        )

    def configure_l2_token_bridge(book):
        bridge = book[L2_BRIDGE_KEY].address
        ctx.l2.invoke(bridge, "set_erc20_class_hash", [book[ERC20_CLASS_KEY]], label="L2 token bridge set_erc20_class_hash")
        ctx.l2.invoke(
            bridge,
            "set_l1_bridge",
            [l1_address_to_felt(book[L1_BRIDGE_KEY].hex)],
            label="L2 token bridge set_l1_bridge",
        )

    def enroll_test_token(book):
        ctx.l1.invoke(
            book[MANAGER_KEY].hex,
            "enrollTokenBridge",
            [book[L1_TOKEN_KEY].hex],
            abi=STARKGATE_MANAGER_ABI,
            value=TOKEN_ENROLL_FEE,
            label="starkgate manager enrollTokenBridge",
        )

    def resolve_l2_token(book):
        ctx.wait_gate.wait_for_cross_chain_effect(
            config.l1_wait_time + config.cross_chain_wait_time,
            reason="test token deployment on L2",
        )
        result = ctx.l2.call(
            book[L2_BRIDGE_KEY].address,
            "get_l2_token",
            [l1_address_to_felt(book[L1_TOKEN_KEY].hex)],
        )
        if not result or not result[0]:
            raise ValueError(f"L2 bridge has no token for {book[L1_TOKEN_KEY].hex}")
        logger.info(f"L2 test token at {hex(result[0])}")
        return {L2_TOKEN_KEY: DeployedContractRef(result[0], Layer.L2, book[ERC20_CLASS_KEY])}

    l1_keys = tuple(key for key, _, _ in _L1_CONTRACTS)
    l1_deps = (CORE_CONTRACT_KEY,) + l1_keys + tuple(k + _IMPL for k in l1_keys)

    steps = [
        _deploy_step(MANAGER_KEY, L1_STARKGATE_MANAGER, "starkgate manager"),
        _deploy_step(REGISTRY_KEY, L1_STARKGATE_REGISTRY, "starkgate registry"),
        _deploy_step(L1_BRIDGE_KEY, L1_TOKEN_BRIDGE, "token bridge"),
        WorkflowStep("deploy_test_token", deploy_test_token, phase=P.L1_CONTRACTS_DEPLOYED),
        WorkflowStep("declare_erc20", declare_erc20, phase=P.L2_CONTRACTS_DEPLOYED),
        WorkflowStep("declare_token_bridge", declare_token_bridge, phase=P.L2_CONTRACTS_DEPLOYED),
        WorkflowStep(
            "deploy_l2_token_bridge",
            deploy_l2_token_bridge,
            requires=(L2_BRIDGE_CLASS_KEY,),
            phase=P.L2_CONTRACTS_DEPLOYED,
        ),
    ]

    if ctx.dev:
        steps.append(WorkflowStep("initialize_token_bridge", initialize_token_bridge, requires=l1_deps, phase=P.L1_INITIALIZED))
    else:
        steps += [
            WorkflowStep("add_implementation_token_bridge", add_implementation_token_bridge, requires=l1_deps, phase=P.L1_INITIALIZED),
            WorkflowStep("upgrade_to_token_bridge", upgrade_to_token_bridge, requires=l1_deps, phase=P.L1_INITIALIZED),
        ]
    steps.append(WorkflowStep("register_l1_bridge_roles", register_l1_bridge_roles, requires=(L1_BRIDGE_KEY,), phase=P.L1_INITIALIZED))
    if not ctx.dev:
        steps.append(WorkflowStep("register_multisig_roles", register_multisig_roles, requires=l1_keys, phase=P.L1_INITIALIZED))

    steps += [
        WorkflowStep("initialize_l2_token_bridge", initialize_l2_token_bridge, requires=(L2_BRIDGE_KEY,), phase=P.L2_INITIALIZED),
        WorkflowStep(
            "configure_l1_token_bridge",
            configure_l1_token_bridge,
            requires=(L1_BRIDGE_KEY, L2_BRIDGE_KEY),
            phase=P.L1_BRIDGE_CONFIGURED,
        ),
        WorkflowStep(
            "configure_l2_token_bridge",
            configure_l2_token_bridge,
            requires=(L1_BRIDGE_KEY, L2_BRIDGE_KEY, ERC20_CLASS_KEY),
            phase=P.L2_BRIDGE_CONFIGURED,
        ),
        WorkflowStep("enroll_test_token", enroll_test_token, requires=(MANAGER_KEY, L1_TOKEN_KEY), phase=P.READY),
        WorkflowStep(
            "resolve_l2_token",
            resolve_l2_token,
            requires=(L2_BRIDGE_KEY, L1_TOKEN_KEY, ERC20_CLASS_KEY),
            phase=P.READY,
        ),
    ]
    return steps

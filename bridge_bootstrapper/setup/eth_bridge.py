"""
Native asset (ETH) bridge pair: legacy StarknetEthBridge on L1, the Cairo 0
bridge and the ETH ERC20 behind legacy proxies on L2.

Phases
------
L1_CONTRACTS_DEPLOYED   L1 bridge implementation + proxy
L2_CONTRACTS_DEPLOYED   class declarations, L2 proxies, implementations
L1_INITIALIZED          initialize (dev) or addImplementation + upgradeTo
L2_INITIALIZED          L2 bridge initialize, after the L1 wait time
L1_BRIDGE_CONFIGURED    limits, L2 bridge address, governor nomination
L2_BRIDGE_CONFIGURED    L2 token
READY                   L2 bridge pointed at the L1 bridge
"""
from __future__ import annotations

import logging
from typing import Sequence

from ..config.abis import ETH_BRIDGE_ABI
from ..config.constants import (
    ERC20_LEGACY_PATH,
    ETH_BRIDGE_PROXY_SALT,
    ETH_TOKEN_DECIMALS,
    ETH_TOKEN_NAME,
    ETH_TOKEN_PROXY_SALT,
    ETH_TOKEN_SYMBOL,
    L1_ETH_BRIDGE,
    LEGACY_BRIDGE_PATH,
    MAX_DEPOSIT,
    MAX_TOTAL_BALANCE,
    PROXY_LEGACY_PATH,
    STARKGATE_PROXY_PATH,
)
from ..helpers.felt import encode_words, l1_address_to_felt, random_salt, short_string
from ..helpers.signer import Layer
from . import l1_proxy
from .context import BootstrapContext
from .core_contract import CORE_CONTRACT_KEY
from .sequencer import BridgePhase, DeployedContractRef, WorkflowStep

logger = logging.getLogger(__name__)

L1_BRIDGE_KEY = "ETH_l1_bridge_address"
L1_BRIDGE_IMPL_KEY = "ETH_l1_bridge_implementation"
L2_BRIDGE_KEY = "ETH_l2_bridge_address"
L2_BRIDGE_PROXY_KEY = "ETH_l2_bridge_address_proxy"
L2_TOKEN_KEY = "l2_eth_address"
L2_TOKEN_PROXY_KEY = "l2_eth_address_proxy"


def deploy_l2_proxy(ctx: BootstrapContext, class_hash: int, salt: int, deploy_from_zero: int, label: str) -> int:
    """Deploy a legacy proxy through the account's deploy_contract entry point."""
    return ctx.l2.deploy_via_udc(ctx.l2.address, [class_hash, salt, 1, 0, deploy_from_zero], label=label)


def deploy_l2_implementation(ctx: BootstrapContext, class_hash: int, label: str, constructor_calldata: Sequence[int] = ()) -> int:
    """Non-unique deployment under a fresh salt: [class_hash, salt, unique, len, *calldata]."""
    calldata = [class_hash, random_salt(), 0, len(constructor_calldata), *constructor_calldata]
    return ctx.l2.deploy_via_udc(ctx.l2.address, calldata, label=label)


def upgrade_l2_proxy(
    ctx: BootstrapContext, proxy: int, implementation: int, init_calldata: list[int], label: str, eic: int = 0
) -> None:
    """add_implementation then upgrade_to on a legacy L2 proxy. Both take the same calldata."""
    calldata = [implementation, eic, len(init_calldata), *init_calldata, 0]
    ctx.l2.invoke(proxy, "add_implementation", calldata, label=f"{label} add_implementation")
    ctx.l2.invoke(proxy, "upgrade_to", calldata, label=f"{label} upgrade_to")


def init_governance(ctx: BootstrapContext, proxy: int, label: str) -> None:
    ctx.l2.invoke(proxy, "init_governance", [], label=f"{label} init_governance")


def eth_bridge_init_data(messaging: str) -> bytes:
    # [external initializer, token (native), messaging contract]
    return encode_words(0, 0, messaging)


def _declaration_step(ctx: BootstrapContext, name: str, key: str, path: str) -> WorkflowStep:
    def declare(book):
        class_hash = ctx.l2.declare_legacy(ctx.artifacts.l2_legacy(path), label=f"declare {name}")
        ctx.pause_between_declarations()
        return {key: class_hash}

    return WorkflowStep(f"declare_{name}", declare, phase=BridgePhase.L2_CONTRACTS_DEPLOYED)


def build_eth_bridge_steps(ctx: BootstrapContext) -> list[WorkflowStep]:
    config = ctx.config
    P = BridgePhase

    def deploy_l1_eth_bridge(book):
        implementation, proxy = l1_proxy.deploy_behind_proxy(ctx, L1_ETH_BRIDGE, "ETH bridge")
        return {
            L1_BRIDGE_KEY: DeployedContractRef(proxy, Layer.L1),
            L1_BRIDGE_IMPL_KEY: DeployedContractRef(implementation, Layer.L1),
        }

    def deploy_eth_token_proxy(book):
        address = deploy_l2_proxy(ctx, book["legacy_proxy_class_hash"], ETH_TOKEN_PROXY_SALT, 1, "ETH token proxy")
        return {L2_TOKEN_PROXY_KEY: DeployedContractRef(address, Layer.L2, book["legacy_proxy_class_hash"])}

    def deploy_eth_bridge_proxy(book):
        address = deploy_l2_proxy(ctx, book["legacy_proxy_class_hash"], ETH_BRIDGE_PROXY_SALT, 0, "ETH bridge proxy")
        return {L2_BRIDGE_PROXY_KEY: DeployedContractRef(address, Layer.L2, book["legacy_proxy_class_hash"])}

    def init_governance_proxies(book):
        init_governance(ctx, book[L2_TOKEN_PROXY_KEY].address, "ETH token proxy")
        init_governance(ctx, book[L2_BRIDGE_PROXY_KEY].address, "ETH bridge proxy")

    def deploy_l2_eth_bridge(book):
        class_hash = book["legacy_eth_bridge_class_hash"]
        proxy = book[L2_BRIDGE_PROXY_KEY].address
        implementation = deploy_l2_implementation(ctx, class_hash, "ETH bridge implementation")
        # Proxy governor: the deployer account
        upgrade_l2_proxy(ctx, proxy, implementation, [ctx.l2.address], "ETH bridge proxy")
        return {L2_BRIDGE_KEY: DeployedContractRef(proxy, Layer.L2, class_hash)}

    def deploy_l2_eth_token(book):
        class_hash = book["erc20_legacy_class_hash"]
        proxy = book[L2_TOKEN_PROXY_KEY].address
        implementation = deploy_l2_implementation(ctx, class_hash, "ETH token implementation")
        init = [
            short_string(ETH_TOKEN_NAME),
            short_string(ETH_TOKEN_SYMBOL),
            ETH_TOKEN_DECIMALS,
            book[L2_BRIDGE_KEY].address,
        ]
        upgrade_l2_proxy(ctx, proxy, implementation, init, "ETH token proxy")
        return {L2_TOKEN_KEY: DeployedContractRef(proxy, Layer.L2, class_hash)}

    def _l1_init(book):
        return (
            book[L1_BRIDGE_KEY].hex,
            book[L1_BRIDGE_IMPL_KEY].hex,
            eth_bridge_init_data(book[CORE_CONTRACT_KEY].hex),
        )

    def initialize_eth_bridge(book):
        proxy, _, data = _l1_init(book)
        l1_proxy.initialize(ctx, proxy, data, "ETH bridge")

    def add_implementation_eth_bridge(book):
        proxy, implementation, data = _l1_init(book)
        l1_proxy.add_implementation(ctx, proxy, implementation, data, "ETH bridge")

    def upgrade_to_eth_bridge(book):
        proxy, implementation, data = _l1_init(book)
        l1_proxy.upgrade_to(ctx, proxy, implementation, data, "ETH bridge")

    def initialize_l2_eth_bridge(book):
        ctx.wait_gate.wait_for_cross_chain_effect(config.l1_wait_time, reason="L1 bridge initialization")
        ctx.l2.invoke(
            book[L2_BRIDGE_KEY].address,
            "initialize",
            [1, ctx.l2.address],
            label="ETH l2 bridge initialize",
        )

    def configure_l1_eth_bridge(book):
        bridge = book[L1_BRIDGE_KEY].hex
        ctx.l1.invoke(bridge, "setMaxTotalBalance", [MAX_TOTAL_BALANCE], abi=ETH_BRIDGE_ABI, label="ETH bridge setMaxTotalBalance")
        ctx.l1.invoke(bridge, "setMaxDeposit", [MAX_DEPOSIT], abi=ETH_BRIDGE_ABI, label="ETH bridge setMaxDeposit")
        ctx.l1.invoke(
            bridge,
            "setL2TokenBridge",
            [book[L2_BRIDGE_KEY].address],
            abi=ETH_BRIDGE_ABI,
            label="ETH bridge setL2TokenBridge",
        )

    def nominate_eth_bridge_governor(book):
        l1_proxy.nominate_proxy_governor(ctx, book[L1_BRIDGE_KEY].hex, config.l1_multisig_address, "ETH bridge")

    def configure_l2_eth_bridge(book):
        ctx.l2.invoke(
            book[L2_BRIDGE_KEY].address,
            "set_l2_token",
            [book[L2_TOKEN_KEY].address],
            label="ETH l2 bridge set_l2_token",
        )

    def link_l2_eth_bridge(book):
        ctx.l2.invoke(
            book[L2_BRIDGE_KEY].address,
            "set_l1_bridge",
            [l1_address_to_felt(book[L1_BRIDGE_KEY].hex)],
            label="ETH l2 bridge set_l1_bridge",
        )

    l1_deps = (CORE_CONTRACT_KEY, L1_BRIDGE_KEY, L1_BRIDGE_IMPL_KEY)
    l2_deps = (L2_BRIDGE_KEY, L2_TOKEN_KEY)

    steps = [
        WorkflowStep("deploy_l1_eth_bridge", deploy_l1_eth_bridge, phase=P.L1_CONTRACTS_DEPLOYED),
        _declaration_step(ctx, "legacy_proxy", "legacy_proxy_class_hash", PROXY_LEGACY_PATH),
        _declaration_step(ctx, "starkgate_proxy", "starkgate_proxy_class_hash", STARKGATE_PROXY_PATH),
        _declaration_step(ctx, "erc20_legacy", "erc20_legacy_class_hash", ERC20_LEGACY_PATH),
        _declaration_step(ctx, "legacy_eth_bridge", "legacy_eth_bridge_class_hash", LEGACY_BRIDGE_PATH),
        WorkflowStep(
            "deploy_eth_token_proxy",
            deploy_eth_token_proxy,
            requires=("legacy_proxy_class_hash",),
            phase=P.L2_CONTRACTS_DEPLOYED,
        ),
        WorkflowStep(
            "deploy_eth_bridge_proxy",
            deploy_eth_bridge_proxy,
            requires=("legacy_proxy_class_hash",),
            phase=P.L2_CONTRACTS_DEPLOYED,
        ),
        WorkflowStep(
            "init_governance_proxies",
            init_governance_proxies,
            requires=(L2_TOKEN_PROXY_KEY, L2_BRIDGE_PROXY_KEY),
            phase=P.L2_CONTRACTS_DEPLOYED,
        ),
        WorkflowStep(
            "deploy_l2_eth_bridge",
            deploy_l2_eth_bridge,
            requires=("legacy_eth_bridge_class_hash", L2_BRIDGE_PROXY_KEY),
            phase=P.L2_CONTRACTS_DEPLOYED,
        ),
        WorkflowStep(
            "deploy_l2_eth_token",
            deploy_l2_eth_token,
            requires=("erc20_legacy_class_hash", L2_TOKEN_PROXY_KEY, L2_BRIDGE_KEY),
            phase=P.L2_CONTRACTS_DEPLOYED,
        ),
    ]

    if ctx.dev:
        steps.append(WorkflowStep("initialize_eth_bridge", initialize_eth_bridge, requires=l1_deps, phase=P.L1_INITIALIZED))
    else:
        steps += [
            WorkflowStep("add_implementation_eth_bridge", add_implementation_eth_bridge, requires=l1_deps, phase=P.L1_INITIALIZED),
            WorkflowStep("upgrade_to_eth_bridge", upgrade_to_eth_bridge, requires=l1_deps, phase=P.L1_INITIALIZED),
        ]

    steps += [
        WorkflowStep("initialize_l2_eth_bridge", initialize_l2_eth_bridge, requires=l2_deps, phase=P.L2_INITIALIZED),
        WorkflowStep(
            "configure_l1_eth_bridge",
            configure_l1_eth_bridge,
            requires=(L1_BRIDGE_KEY, L2_BRIDGE_KEY),
            phase=P.L1_BRIDGE_CONFIGURED,
        ),
    ]
    if not ctx.dev:
        steps.append(
            WorkflowStep(
                "nominate_eth_bridge_governor",
                nominate_eth_bridge_governor,
                requires=(L1_BRIDGE_KEY,),
                phase=P.L1_BRIDGE_CONFIGURED,
            )
        )

    steps += [
        WorkflowStep("configure_l2_eth_bridge", configure_l2_eth_bridge, requires=l2_deps, phase=P.L2_BRIDGE_CONFIGURED),
        WorkflowStep("link_l2_eth_bridge", link_l2_eth_bridge, requires=(L1_BRIDGE_KEY, L2_BRIDGE_KEY), phase=P.READY),
    ]
    return steps

"""
Upgrades of an already bootstrapped ETH bridge.

eth-token       Cairo 0 ETH token proxy -> Cairo 1 ETH token
l2-eth-bridge   Cairo 0 L2 ETH bridge proxy -> Cairo 1 bridge
l1-eth-bridge   L1 StarknetEthBridge -> multi token bridge behind the same proxy

The L2 upgrades go through the legacy proxy once (add_implementation /
upgrade_to with an external initializer contract), register the account as
governance admin and upgrade governor, then replace the proxy class with the
Cairo 1 class (add_new_implementation / replace_to).

Phases
------
IMPLEMENTATION_DEPLOYED   declarations and deployments of the EIC and the new implementation
IMPLEMENTATION_ADDED      add_implementation on the proxy
UPGRADED                  upgrade_to on the proxy
READY                     L2: governance roles + class replacement; L1: new limits
"""
from __future__ import annotations

import logging
from typing import Callable

from ..config.abis import ETH_BRIDGE_UPGRADED_ABI
from ..config.constants import (
    EIC_ETH_BRIDGE_CASM_PATH,
    EIC_ETH_BRIDGE_SIERRA_PATH,
    EIC_ETH_TOKEN_CASM_PATH,
    EIC_ETH_TOKEN_SIERRA_PATH,
    ETH_TOKEN_SYMBOL,
    L1_ETH_BRIDGE_EIC,
    L1_ETH_BRIDGE_UPGRADED,
    L1_ETH_TOKEN_KEY,
    NEW_ETH_BRIDGE_CASM_PATH,
    NEW_ETH_BRIDGE_SIERRA_PATH,
    NEW_ETH_TOKEN_CASM_PATH,
    NEW_ETH_TOKEN_SIERRA_PATH,
    NO_EIC_DATA,
    UPGRADE_TOKEN_PLACEHOLDER_DECIMALS,
    UPGRADE_TOKEN_PLACEHOLDER_NAME,
    UPGRADE_TOKEN_PLACEHOLDER_SYMBOL,
    UPGRADED_MAX_TOTAL_BALANCE,
)
from ..helpers.felt import encode_words, short_string, to_felt, to_uint256
from ..helpers.signer import Layer
from . import eth_bridge, l1_proxy
from .context import BootstrapContext
from .sequencer import AddressBook, DeployedContractRef, SequencerObserver, StepSequencer, UpgradePhase, WorkflowStep

logger = logging.getLogger(__name__)

UPGRADE_TARGETS = ("eth-token", "l2-eth-bridge", "l1-eth-bridge")


def _l2_cairo_one_upgrade_steps(
    ctx: BootstrapContext,
    name: str,
    proxy_key: str,
    eic_paths: tuple[str, str],
    new_paths: tuple[str, str],
    constructor_calldata: Callable[[AddressBook], list[int]],
    eic_init_calldata: Callable[[AddressBook], list[int]],
    implementation_requires: tuple[str, ...] = (),
) -> list[WorkflowStep]:
    P = UpgradePhase
    eic_class_key = f"{name}_eic_class_hash"
    new_class_key = f"{name}_cairo_one_class_hash"
    eic_key = f"{name}_eic_address"
    impl_key = f"{name}_cairo_one_implementation"

    def declare(key: str, paths: tuple[str, str], what: str):
        def run(book):
            class_hash = ctx.l2.declare_sierra(ctx.artifacts.l2_sierra(*paths), label=f"declare {name} {what}")
            ctx.pause_between_declarations()
            return {key: class_hash}

        return run

    def deploy_eic(book):
        address = eth_bridge.deploy_l2_implementation(ctx, book[eic_class_key], f"{name} EIC")
        return {eic_key: DeployedContractRef(address, Layer.L2, book[eic_class_key])}

    def deploy_implementation(book):
        address = eth_bridge.deploy_l2_implementation(
            ctx, book[new_class_key], f"{name} Cairo 1 implementation", constructor_calldata(book)
        )
        logger.info(f"{name} | Cairo 1 implementation at {hex(address)}")
        return {impl_key: DeployedContractRef(address, Layer.L2, book[new_class_key])}

    def _implementation_calldata(book) -> list[int]:
        init = eic_init_calldata(book)
        return [book[impl_key].address, book[eic_key].address, len(init), *init, 0]

    def add_implementation(book):
        ctx.l2.invoke(
            book[proxy_key].address,
            "add_implementation",
            _implementation_calldata(book),
            label=f"{name} proxy add_implementation",
        )

    def upgrade_to(book):
        ctx.l2.invoke(
            book[proxy_key].address,
            "upgrade_to",
            _implementation_calldata(book),
            label=f"{name} proxy upgrade_to",
        )

    def register_governance(book):
        proxy = book[proxy_key].address
        for method in ("register_governance_admin", "register_upgrade_governor"):
            ctx.l2.invoke(proxy, method, [ctx.l2.address], label=f"{name} {method}")

    def replace_class(book):
        proxy = book[proxy_key].address
        calldata = [book[new_class_key], NO_EIC_DATA, 0]
        for method in ("add_new_implementation", "replace_to"):
            ctx.l2.invoke(proxy, method, calldata, label=f"{name} {method}")
        logger.info(f"{name} | proxy {hex(proxy)} now runs class {hex(book[new_class_key])}")
        return {proxy_key: DeployedContractRef(proxy, Layer.L2, book[new_class_key])}

    deployed = (proxy_key, impl_key, eic_key)
    return [
        WorkflowStep(
            f"declare_{name}_eic",
            declare(eic_class_key, eic_paths, "EIC"),
            requires=(proxy_key,),
            phase=P.IMPLEMENTATION_DEPLOYED,
        ),
        WorkflowStep(
            f"declare_{name}_cairo_one",
            declare(new_class_key, new_paths, "Cairo 1 class"),
            requires=(proxy_key,),
            phase=P.IMPLEMENTATION_DEPLOYED,
        ),
        WorkflowStep(f"deploy_{name}_eic", deploy_eic, requires=(eic_class_key,), phase=P.IMPLEMENTATION_DEPLOYED),
        WorkflowStep(
            f"deploy_{name}_cairo_one",
            deploy_implementation,
            requires=(new_class_key, *implementation_requires),
            phase=P.IMPLEMENTATION_DEPLOYED,
        ),
        WorkflowStep(f"add_implementation_{name}", add_implementation, requires=deployed, phase=P.IMPLEMENTATION_ADDED),
        WorkflowStep(f"upgrade_to_{name}", upgrade_to, requires=deployed, phase=P.UPGRADED),
        WorkflowStep(f"register_{name}_governance", register_governance, requires=(proxy_key,), phase=P.READY),
        WorkflowStep(f"replace_{name}_class", replace_class, requires=(proxy_key, new_class_key), phase=P.READY),
    ]


def build_eth_token_upgrade_steps(ctx: BootstrapContext) -> list[WorkflowStep]:
    def constructor_calldata(book):
        bridge = book[eth_bridge.L2_BRIDGE_KEY].address
        supply_low, supply_high = to_uint256(0)
        # name, symbol, decimals, initial supply, recipient, permitted minter,
        # provisional governance admin, upgrade delay
        return [
            UPGRADE_TOKEN_PLACEHOLDER_NAME,
            UPGRADE_TOKEN_PLACEHOLDER_SYMBOL,
            UPGRADE_TOKEN_PLACEHOLDER_DECIMALS,
            supply_low,
            supply_high,
            bridge,
            bridge,
            to_felt(ctx.l2.address),
            0,
        ]

    return _l2_cairo_one_upgrade_steps(
        ctx,
        "eth_token",
        eth_bridge.L2_TOKEN_KEY,
        (EIC_ETH_TOKEN_SIERRA_PATH, EIC_ETH_TOKEN_CASM_PATH),
        (NEW_ETH_TOKEN_SIERRA_PATH, NEW_ETH_TOKEN_CASM_PATH),
        constructor_calldata,
        lambda book: [],
        implementation_requires=(eth_bridge.L2_BRIDGE_KEY,),
    )


def build_l2_eth_bridge_upgrade_steps(ctx: BootstrapContext) -> list[WorkflowStep]:
    return _l2_cairo_one_upgrade_steps(
        ctx,
        "eth_bridge",
        eth_bridge.L2_BRIDGE_KEY,
        (EIC_ETH_BRIDGE_SIERRA_PATH, EIC_ETH_BRIDGE_CASM_PATH),
        (NEW_ETH_BRIDGE_SIERRA_PATH, NEW_ETH_BRIDGE_CASM_PATH),
        # upgrade delay
        lambda book: [0],
        # EIC: register the ETH token under its symbol
        lambda book: [short_string(ETH_TOKEN_SYMBOL), to_felt(ctx.config.fee_token_address)],
    )


def build_l1_eth_bridge_upgrade_steps(ctx: BootstrapContext) -> list[WorkflowStep]:
    """
    Replace the L1 ETH bridge implementation behind its governed proxy.

    Raises:
        ValueError: on dev deployments, whose unsafe proxy cannot be upgraded
    """
    if ctx.dev:
        raise ValueError("l1-eth-bridge upgrade needs the governed proxy of a production deployment")
    P = UpgradePhase
    proxy_key = eth_bridge.L1_BRIDGE_KEY
    impl_key = "ETH_l1_bridge_upgraded_implementation"
    eic_key = "ETH_l1_bridge_eic_address"

    def deploy_contracts(book):
        implementation = ctx.l1.deploy(ctx.artifacts.l1(L1_ETH_BRIDGE_UPGRADED), label="deploy upgraded ETH bridge")
        eic = ctx.l1.deploy(ctx.artifacts.l1(L1_ETH_BRIDGE_EIC), label="deploy ETH bridge EIC")
        logger.info(f"l1 ETH bridge upgrade | implementation {implementation} | EIC {eic}")
        return {
            impl_key: DeployedContractRef(implementation, Layer.L1),
            eic_key: DeployedContractRef(eic, Layer.L1),
        }

    def _upgrade_args(book):
        # [eic address, 0, 0], each as a 32-byte word
        return book[proxy_key].hex, book[impl_key].hex, encode_words(book[eic_key].hex, 0, 0)

    def add_implementation(book):
        l1_proxy.add_implementation(ctx, *_upgrade_args(book), "upgraded ETH bridge")

    def upgrade_to(book):
        l1_proxy.upgrade_to(ctx, *_upgrade_args(book), "upgraded ETH bridge")

    def set_limits(book):
        ctx.l1.invoke(
            book[proxy_key].hex,
            "setMaxTotalBalance",
            [L1_ETH_TOKEN_KEY, UPGRADED_MAX_TOTAL_BALANCE],
            abi=ETH_BRIDGE_UPGRADED_ABI,
            label="upgraded ETH bridge setMaxTotalBalance",
        )

    deployed = (proxy_key, impl_key, eic_key)
    return [
        WorkflowStep("deploy_upgraded_l1_eth_bridge", deploy_contracts, requires=(proxy_key,), phase=P.IMPLEMENTATION_DEPLOYED),
        WorkflowStep("add_implementation_l1_eth_bridge", add_implementation, requires=deployed, phase=P.IMPLEMENTATION_ADDED),
        WorkflowStep("upgrade_to_l1_eth_bridge", upgrade_to, requires=deployed, phase=P.UPGRADED),
        WorkflowStep("set_l1_eth_bridge_limits", set_limits, requires=(proxy_key,), phase=P.READY),
    ]


_BUILDERS: dict[str, tuple[str, Callable[[BootstrapContext], list[WorkflowStep]]]] = {
    "eth-token": ("eth_token_upgrade", build_eth_token_upgrade_steps),
    "l2-eth-bridge": ("l2_eth_bridge_upgrade", build_l2_eth_bridge_upgrade_steps),
    "l1-eth-bridge": ("l1_eth_bridge_upgrade", build_l1_eth_bridge_upgrade_steps),
}


def run_upgrades(
    ctx: BootstrapContext,
    book: AddressBook,
    targets: tuple[str, ...] | list[str] = UPGRADE_TARGETS,
    observer: SequencerObserver | None = None,
) -> AddressBook:
    """
    Run the requested upgrade pipelines in order, threading the address book.

    Every pipeline is built before the first one runs, so a target that
    cannot run on this deployment is rejected up front.
    """
    unknown = [t for t in targets if t not in _BUILDERS]
    if unknown:
        raise ValueError(f"Unknown upgrade target(s): {', '.join(unknown)}")
    pipelines = [(_BUILDERS[t][0], _BUILDERS[t][1](ctx)) for t in targets]
    for pipeline, steps in pipelines:
        logger.info(f"Starting upgrade {pipeline}")
        book = StepSequencer(pipeline, observer).run(steps, book)
    return book


def upgrade_eth_token_to_cairo_1(ctx: BootstrapContext, book: AddressBook, observer: SequencerObserver | None = None) -> AddressBook:
    return run_upgrades(ctx, book, ["eth-token"], observer)


def upgrade_eth_bridge_to_cairo_1(ctx: BootstrapContext, book: AddressBook, observer: SequencerObserver | None = None) -> AddressBook:
    return run_upgrades(ctx, book, ["l2-eth-bridge"], observer)


def upgrade_l1_bridge(ctx: BootstrapContext, book: AddressBook, observer: SequencerObserver | None = None) -> AddressBook:
    return run_upgrades(ctx, book, ["l1-eth-bridge"], observer)

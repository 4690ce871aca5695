"""
L1 proxy deployment helpers shared by the core contract and bridge pipelines.

Dev runs put each implementation behind an unsafe proxy that forwards a
plain ``initialize(bytes)``. Production runs deploy the governed Proxy and
attach the implementation with ``addImplementation`` + ``upgradeTo``.
"""
from __future__ import annotations

import logging

from ..config.abis import INITIALIZE_ABI, PROXY_ABI
from ..config.constants import L1_PROXY, L1_UNSAFE_PROXY
from .context import BootstrapContext

logger = logging.getLogger(__name__)

# Proxy constructor argument: upgrade activation delay in seconds
UPGRADE_DELAY = 0


def deploy_behind_proxy(ctx: BootstrapContext, implementation: str, label: str) -> tuple[str, str]:
    """Deploy ``implementation`` and a proxy in front of it. Returns (implementation, proxy)."""
    impl_artifact = ctx.artifacts.l1(implementation)
    impl_address = ctx.l1.deploy(impl_artifact, label=f"deploy {label} implementation")

    if ctx.dev:
        proxy_artifact = ctx.artifacts.l1(L1_UNSAFE_PROXY)
        proxy_address = ctx.l1.deploy(proxy_artifact, [impl_address], label=f"deploy {label} unsafe proxy")
    else:
        proxy_artifact = ctx.artifacts.l1(L1_PROXY)
        proxy_address = ctx.l1.deploy(proxy_artifact, [UPGRADE_DELAY], label=f"deploy {label} proxy")

    logger.info(f"{label} | implementation {impl_address} | proxy {proxy_address}")
    return impl_address, proxy_address


def initialize(ctx: BootstrapContext, proxy: str, data: bytes, label: str) -> None:
    """Dev path: initialize through the unsafe proxy."""
    ctx.l1.invoke(proxy, "initialize", [data], abi=INITIALIZE_ABI, label=f"{label} initialize")


def add_implementation(ctx: BootstrapContext, proxy: str, implementation: str, data: bytes, label: str) -> None:
    ctx.l1.invoke(
        proxy,
        "addImplementation",
        [implementation, data, False],
        abi=PROXY_ABI,
        label=f"{label} addImplementation",
    )


def upgrade_to(ctx: BootstrapContext, proxy: str, implementation: str, data: bytes, label: str) -> None:
    ctx.l1.invoke(
        proxy,
        "upgradeTo",
        [implementation, data, False],
        abi=PROXY_ABI,
        label=f"{label} upgradeTo",
    )


def nominate_proxy_governor(ctx: BootstrapContext, proxy: str, governor: str, label: str) -> None:
    ctx.l1.invoke(
        proxy,
        "proxyNominateNewGovernor",
        [governor],
        abi=PROXY_ABI,
        label=f"{label} proxyNominateNewGovernor",
    )

"""
Starknet core contract deployment on L1.

The core contract comes in two variants that share one operation set:

- SOVEREIGN: used by dev runs. Deployed behind the unsafe proxy and
  initialized directly.
- VALIDITY: used by production runs. Deployed behind the governed proxy,
  attached with addImplementation + upgradeTo, then handed over to the
  operator and the L1 multisig.

Public API
----------
CoreContractVariant
    SOVEREIGN / VALIDITY, with the artifact each one deploys.
CoreContractInitData
    ABI-encodes the initialization payload.
CoreContractHandle
    Operations on a deployed core contract (initialize, add_implementation,
    upgrade_to, register_operator, nominate_governor, nominate_governor_proxy).
build_core_contract_steps(ctx)
    The sequencer steps for the configured mode.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from eth_abi import encode
from eth_utils import to_checksum_address

from ..config.abis import CORE_CONTRACT_ABI, CORE_CONTRACT_PROXY_ABI
from ..config.constants import L1_STARKNET_SOVEREIGN, L1_STARKNET_VALIDITY
from ..helpers.signer import Layer
from . import l1_proxy
from .context import BootstrapContext
from .sequencer import AddressBook, DeployedContractRef, WorkflowStep

logger = logging.getLogger(__name__)

CORE_CONTRACT_KEY = "l1_core_contract_address"
CORE_IMPLEMENTATION_KEY = "l1_core_contract_implementation"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class CoreContractVariant(Enum):
    SOVEREIGN = "sovereign"
    VALIDITY = "validity"

    @property
    def artifact(self) -> str:
        return L1_STARKNET_SOVEREIGN if self is CoreContractVariant.SOVEREIGN else L1_STARKNET_VALIDITY

    @classmethod
    def for_mode(cls, dev: bool) -> "CoreContractVariant":
        return cls.SOVEREIGN if dev else cls.VALIDITY


@dataclass(frozen=True)
class CoreContractInitData:
    program_hash: int
    config_hash: int
    verifier: str = ZERO_ADDRESS
    aggregator_program_hash: int = 0
    state_root: int = 0
    # -1 marks "no state update yet"
    block_number: int = -1
    block_hash: int = 0

    def encode(self) -> bytes:
        """External initializer address (none) followed by the init tuple."""
        return encode(
            ["address", "uint256", "uint256", "address", "uint256", "uint256", "int256", "uint256"],
            [
                ZERO_ADDRESS,
                self.program_hash,
                self.aggregator_program_hash,
                to_checksum_address(self.verifier),
                self.config_hash,
                self.state_root,
                self.block_number,
                self.block_hash,
            ],
        )


class CoreContractHandle:
    """A deployed core contract, whichever variant it is."""

    def __init__(self, ctx: BootstrapContext, variant: CoreContractVariant, address: str, implementation: str):
        self.ctx = ctx
        self.variant = variant
        self.address = address
        self.implementation = implementation

    def __repr__(self) -> str:
        return f"CoreContractHandle({self.variant.value}, {self.address})"

    @classmethod
    def deploy(cls, ctx: BootstrapContext, variant: CoreContractVariant) -> "CoreContractHandle":
        implementation, proxy = l1_proxy.deploy_behind_proxy(ctx, variant.artifact, f"core contract ({variant.value})")
        return cls(ctx, variant, proxy, implementation)

    @classmethod
    def from_book(cls, ctx: BootstrapContext, book: AddressBook) -> "CoreContractHandle":
        return cls(
            ctx,
            CoreContractVariant.for_mode(ctx.dev),
            book[CORE_CONTRACT_KEY].hex,
            book[CORE_IMPLEMENTATION_KEY].hex,
        )

    def initialize(self, init_data: CoreContractInitData) -> None:
        l1_proxy.initialize(self.ctx, self.address, init_data.encode(), "core contract")

    def add_implementation(self, init_data: CoreContractInitData) -> None:
        l1_proxy.add_implementation(self.ctx, self.address, self.implementation, init_data.encode(), "core contract")

    def upgrade_to(self, init_data: CoreContractInitData) -> None:
        l1_proxy.upgrade_to(self.ctx, self.address, self.implementation, init_data.encode(), "core contract")

    def register_operator(self, operator: str) -> None:
        self.ctx.l1.invoke(
            self.address,
            "registerOperator",
            [to_checksum_address(operator)],
            abi=CORE_CONTRACT_ABI,
            label="core contract registerOperator",
        )

    def nominate_governor(self, governor: str) -> None:
        self.ctx.l1.invoke(
            self.address,
            "starknetNominateNewGovernor",
            [to_checksum_address(governor)],
            abi=CORE_CONTRACT_ABI,
            label="core contract starknetNominateNewGovernor",
        )

    def nominate_governor_proxy(self, governor: str) -> None:
        self.ctx.l1.invoke(
            self.address,
            "proxyNominateNewGovernor",
            [to_checksum_address(governor)],
            abi=CORE_CONTRACT_PROXY_ABI,
            label="core contract proxyNominateNewGovernor",
        )


def core_contract_init_data(ctx: BootstrapContext) -> CoreContractInitData:
    program_hash, config_hash = ctx.bridge_init_configs()
    if ctx.dev:
        return CoreContractInitData(program_hash=program_hash, config_hash=config_hash)
    return CoreContractInitData(
        program_hash=program_hash,
        config_hash=config_hash,
        verifier=ctx.config.verifier_address,
    )


def build_core_contract_steps(ctx: BootstrapContext) -> list[WorkflowStep]:
    variant = CoreContractVariant.for_mode(ctx.dev)
    config = ctx.config

    def deploy_core_contract(book):
        handle = CoreContractHandle.deploy(ctx, variant)
        logger.info(f"Core contract ({variant.value}) at {handle.address}")
        return {
            CORE_CONTRACT_KEY: DeployedContractRef(handle.address, Layer.L1),
            CORE_IMPLEMENTATION_KEY: DeployedContractRef(handle.implementation, Layer.L1),
        }

    deps = (CORE_CONTRACT_KEY, CORE_IMPLEMENTATION_KEY)

    if ctx.dev:
        def initialize_core_contract(book):
            handle = CoreContractHandle.from_book(ctx, book)
            handle.initialize(core_contract_init_data(ctx))
            handle.register_operator(ctx.l1.address)

        return [
            WorkflowStep("deploy_core_contract", deploy_core_contract),
            WorkflowStep("initialize_core_contract", initialize_core_contract, requires=deps),
        ]

    def add_implementation_core_contract(book):
        CoreContractHandle.from_book(ctx, book).add_implementation(core_contract_init_data(ctx))

    def upgrade_to_core_contract(book):
        CoreContractHandle.from_book(ctx, book).upgrade_to(core_contract_init_data(ctx))

    def register_operator(book):
        CoreContractHandle.from_book(ctx, book).register_operator(config.operator_address)

    def nominate_governor(book):
        CoreContractHandle.from_book(ctx, book).nominate_governor(config.l1_multisig_address)

    def nominate_governor_proxy(book):
        CoreContractHandle.from_book(ctx, book).nominate_governor_proxy(config.l1_multisig_address)

    return [
        WorkflowStep("deploy_core_contract", deploy_core_contract),
        WorkflowStep("add_implementation_core_contract", add_implementation_core_contract, requires=deps),
        WorkflowStep("upgrade_to_core_contract", upgrade_to_core_contract, requires=deps),
        WorkflowStep("register_operator", register_operator, requires=deps),
        WorkflowStep("nominate_governor", nominate_governor, requires=deps),
        WorkflowStep("nominate_governor_proxy", nominate_governor_proxy, requires=deps),
    ]

"""
L2 account setup.

account_init declares the OpenZeppelin account class and deploys the
deployer account controlled by ``rollup_priv_key``. Every later L2 step is
signed by that account. The Argent and Braavos pipelines only declare their
account classes so wallets can deploy against them.
"""
from __future__ import annotations

import logging

from ..config.constants import (
    ARGENT_CASM_PATH,
    ARGENT_SIERRA_PATH,
    BRAAVOS_CASM_PATH,
    BRAAVOS_SIERRA_PATH,
    OZ_ACCOUNT_PATH,
)
from ..helpers.executor import LayerExecutor
from ..helpers.signer import Layer, SignerIdentity
from ..helpers.starknet_client import account_address_for_key, account_public_key
from .context import BootstrapContext
from .sequencer import AddressBook, DeployedContractRef, WorkflowStep

logger = logging.getLogger(__name__)

ACCOUNT_KEY = "l2_account_address"
OZ_CLASS_KEY = "oz_account_class_hash"


def account_signer(ctx: BootstrapContext, book: AddressBook) -> SignerIdentity:
    """Signer for the account deployed by account_init."""
    return SignerIdentity.for_l2(ctx.config.rollup_priv_key, book[ACCOUNT_KEY].hex, legacy=True)


def build_account_init_steps(ctx: BootstrapContext) -> list[WorkflowStep]:
    private_key = ctx.config.rollup_priv_key

    def declare_oz_account(book):
        class_hash = ctx.l2.declare_legacy(ctx.artifacts.l2_legacy(OZ_ACCOUNT_PATH), label="declare OZ account")
        ctx.pause_between_declarations()
        return {OZ_CLASS_KEY: class_hash}

    def deploy_account(book):
        class_hash = book[OZ_CLASS_KEY]
        address = account_address_for_key(private_key, class_hash)
        signer = SignerIdentity.for_l2(private_key, address, legacy=True)
        executor = LayerExecutor(ctx.l2.client, signer, ctx.l2.policy, sleep=ctx.l2.sleep)
        executor.deploy_account(class_hash, [account_public_key(private_key)], label="deploy OZ account")
        logger.info(f"L2 account deployed at {hex(address)}")
        return {ACCOUNT_KEY: DeployedContractRef(address, Layer.L2, class_hash)}

    return [
        WorkflowStep("declare_oz_account", declare_oz_account),
        WorkflowStep("deploy_account", deploy_account, requires=(OZ_CLASS_KEY,)),
    ]


def _sierra_declaration_step(ctx: BootstrapContext, name: str, key: str, sierra: str, casm: str) -> WorkflowStep:
    def declare(book):
        class_hash = ctx.l2.declare_sierra(ctx.artifacts.l2_sierra(sierra, casm), label=f"declare {name}")
        ctx.pause_between_declarations()
        return {key: class_hash}

    return WorkflowStep(f"declare_{name}", declare)


def build_argent_steps(ctx: BootstrapContext) -> list[WorkflowStep]:
    return [_sierra_declaration_step(ctx, "argent", "argent_class_hash", ARGENT_SIERRA_PATH, ARGENT_CASM_PATH)]


def build_braavos_steps(ctx: BootstrapContext) -> list[WorkflowStep]:
    return [_sierra_declaration_step(ctx, "braavos", "braavos_class_hash", BRAAVOS_SIERRA_PATH, BRAAVOS_CASM_PATH)]

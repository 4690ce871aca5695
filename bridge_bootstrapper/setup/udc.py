"""Universal deployer contract (UDC) setup on L2."""
from __future__ import annotations

import logging

from ..config.constants import UDC_PATH
from ..helpers.felt import random_salt
from ..helpers.signer import Layer
from .context import BootstrapContext
from .sequencer import DeployedContractRef, WorkflowStep

logger = logging.getLogger(__name__)


def build_udc_steps(ctx: BootstrapContext) -> list[WorkflowStep]:
    def declare_udc(book):
        class_hash = ctx.l2.declare_legacy(ctx.artifacts.l2_legacy(UDC_PATH), label="declare UDC")
        ctx.pause_between_declarations()
        return {"udc_class_hash": class_hash}

    def deploy_udc(book):
        class_hash = book["udc_class_hash"]
        address = ctx.l2.deploy_via_udc(ctx.l2.address, [class_hash, random_salt(), 1, 0], label="deploy UDC")
        logger.info(f"UDC deployed at {hex(address)}")
        return {"udc_address": DeployedContractRef(address, Layer.L2, class_hash)}

    return [
        WorkflowStep("declare_udc", declare_udc),
        WorkflowStep("deploy_udc", deploy_udc, requires=("udc_class_hash",)),
    ]

"""
Full bootstrap run.

Pipelines run one after the other, each through its own StepSequencer, with
the address book threaded from one pipeline into the next:

    core_contract -> account_init -> eth_bridge -> erc20_bridge
                  -> udc -> argent -> braavos

From account_init on, L2 transactions are signed by the freshly deployed
account. A failing step aborts the whole run with StepFailed.
"""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from ..helpers.checkpoint import read_json
from ..helpers.felt import to_felt
from ..helpers.signer import Layer
from .accounts import ACCOUNT_KEY, account_signer, build_account_init_steps, build_argent_steps, build_braavos_steps
from .context import BootstrapContext
from .core_contract import build_core_contract_steps
from .eth_bridge import build_eth_bridge_steps
from .sequencer import (
    AddressBook,
    CheckpointObserver,
    CompositeObserver,
    DeployedContractRef,
    LoggingObserver,
    SequencerObserver,
    StepSequencer,
    WorkflowStep,
)
from .token_bridge import build_token_bridge_steps
from .udc import build_udc_steps

logger = logging.getLogger(__name__)

# Pipelines that run after account_init, signed by the new account
_L2_ACCOUNT_PIPELINES: list[tuple[str, Callable[[BootstrapContext], list[WorkflowStep]]]] = [
    ("eth_bridge", build_eth_bridge_steps),
    ("erc20_bridge", build_token_bridge_steps),
    ("udc", build_udc_steps),
    ("argent", build_argent_steps),
    ("braavos", build_braavos_steps),
]


def default_observer(checkpoint: Path | None) -> SequencerObserver:
    observers = [LoggingObserver()]
    if checkpoint is not None:
        observers.append(CheckpointObserver(checkpoint))
    return CompositeObserver(*observers)


def run_pipeline(
    name: str,
    steps: list[WorkflowStep],
    book: AddressBook,
    observer: SequencerObserver | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> AddressBook:
    logger.info(f"Starting pipeline {name} ({len(steps)} steps)")
    book = StepSequencer(name, observer, clock=clock).run(steps, book)
    logger.info(f"Pipeline {name} complete")
    return book


def bootstrap(
    ctx: BootstrapContext,
    observer: SequencerObserver | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> tuple[AddressBook, BootstrapContext]:
    """
    Deploy and wire everything.

    Returns:
        The final address book and the context bound to the deployed L2 account
    """
    book = AddressBook()
    book = run_pipeline("core_contract", build_core_contract_steps(ctx), book, observer, clock)
    book = run_pipeline("account_init", build_account_init_steps(ctx), book, observer, clock)

    ctx = ctx.with_l2_signer(account_signer(ctx, book))
    for name, build_steps in _L2_ACCOUNT_PIPELINES:
        book = run_pipeline(name, build_steps(ctx), book, observer, clock)

    logger.info(f"Bootstrap complete: {len(book.addresses())} contracts")
    return book, ctx


def load_address_book(path: Path) -> AddressBook:
    """Rebuild an AddressBook from a checkpoint file written by a previous run."""
    entries = {}
    for key, value in read_json(Path(path)).items():
        if isinstance(value, dict) and "address" in value:
            layer = Layer(value["layer"])
            address = value["address"] if layer is Layer.L1 else to_felt(value["address"])
            class_hash = to_felt(value["class_hash"]) if value.get("class_hash") else None
            entries[key] = DeployedContractRef(address, layer, class_hash)
        elif isinstance(value, str) and value.startswith("0x"):
            entries[key] = to_felt(value)
        else:
            entries[key] = value
    return AddressBook(entries)


def context_for_book(ctx: BootstrapContext, book: AddressBook) -> BootstrapContext:
    """Bind the context to the L2 account recorded in ``book``, if there is one."""
    if ACCOUNT_KEY in book:
        return ctx.with_l2_signer(account_signer(ctx, book))
    return ctx

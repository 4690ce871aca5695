"""
Submit-and-confirm helpers bound to one layer and one signer.

Every method sends exactly one transaction through the TransactionSubmitter
and blocks on await_confirmation before returning, so whatever it returns
(addresses, class hashes) comes from a confirmed transaction.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from .errors import ClassAlreadyDeclared
from .poller import await_confirmation
from .signer import SignerIdentity
from .starknet_client import deployed_address_from_receipt
from .transactions import ChainClient, OperationKind, PendingTransaction, Receipt, TransactionSubmitter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollPolicy:
    poll_interval: float = 1.0
    max_attempts: int = 120
    not_found_tolerance: int | None = None


class LayerExecutor:
    def __init__(
        self,
        client: ChainClient,
        signer: SignerIdentity,
        policy: PollPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.signer = signer
        self.policy = policy or PollPolicy()
        self.sleep = sleep
        self.submitter = TransactionSubmitter(client)

    @property
    def address(self) -> str:
        return self.signer.account_address

    def execute(
        self,
        target: str | int | None,
        kind: OperationKind,
        calldata: Sequence[Any] = (),
        **kwargs,
    ) -> tuple[PendingTransaction, Receipt]:
        pending = self.submitter.submit(target, kind, calldata, self.signer, **kwargs)
        receipt = await_confirmation(
            self.client,
            pending,
            self.policy.poll_interval,
            self.policy.max_attempts,
            not_found_tolerance=self.policy.not_found_tolerance,
            sleep=self.sleep,
        )
        logger.debug(f"{pending.label} | confirmed {pending.transaction_hash}")
        return pending, receipt

    def invoke(
        self,
        target: str | int,
        method: str,
        calldata: Sequence[Any] = (),
        *,
        abi: list | None = None,
        value: int = 0,
        label: str | None = None,
    ) -> Receipt:
        _, receipt = self.execute(
            target, OperationKind.INVOKE, calldata, method=method, abi=abi, value=value, label=label
        )
        return receipt

    def call(self, target: str | int, method: str, args: Sequence[Any] = (), abi: list | None = None) -> Any:
        return self.client.call(target, method, args, abi=abi)

    # ------------------------------------------------------------------ #
    # Deployment                                                         #
    # ------------------------------------------------------------------ #

    def deploy(self, artifact, ctor_args: Sequence[Any] = (), label: str | None = None) -> str:
        """Constructor deployment on L1. Returns the new contract address."""
        _, receipt = self.execute(None, OperationKind.DEPLOY, ctor_args, artifact=artifact, label=label or f"deploy {artifact.name}")
        if not receipt.contract_address:
            raise ValueError(f"{label or artifact.name}: receipt has no contractAddress")
        return receipt.contract_address

    def deploy_via_udc(self, deployer: str | int, calldata: Sequence[Any], label: str | None = None) -> int:
        """Call ``deploy_contract`` on the deployer contract and read back the new address."""
        _, receipt = self.execute(
            deployer, OperationKind.DEPLOY_VIA_UDC, calldata, method="deploy_contract", label=label
        )
        return deployed_address_from_receipt(receipt)

    def declare_legacy(self, artifact, label: str | None = None, tolerate_already_declared: bool = True) -> int:
        """
        Declare a Cairo 0 class and return its class hash.

        An "already declared" answer is logged and treated as success; any
        other error propagates.
        """
        label = label or f"declare {artifact.name}"
        try:
            pending, _ = self.execute(None, OperationKind.DECLARE_LEGACY, (), artifact=artifact, label=label)
        except ClassAlreadyDeclared as e:
            if not tolerate_already_declared or e.class_hash is None:
                raise
            logger.warning(f"{label} | class {hex(e.class_hash)} already declared, continuing")
            return e.class_hash
        return pending.class_hash

    def declare_sierra(self, artifact, label: str | None = None) -> int:
        """Declare a Sierra class (with its CASM). Every error is fatal."""
        pending, _ = self.execute(
            None, OperationKind.DECLARE_SIERRA, (), artifact=artifact, label=label or f"declare {artifact.name}"
        )
        return pending.class_hash

    def deploy_account(self, class_hash: int, constructor_calldata: Sequence[Any], salt: int = 0, label: str | None = None) -> str:
        """Deploy the account contract this executor signs for. Returns its address."""
        self.execute(
            class_hash,
            OperationKind.DEPLOY_ACCOUNT,
            constructor_calldata,
            salt=salt,
            label=label or "deploy account",
        )
        return self.address

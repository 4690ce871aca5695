"""
Transaction submission.

Public API
----------
OperationKind
    What a request asks the chain to do (invoke, declare, deploy).
TransactionRequest / PendingTransaction / Receipt / StatusReport
    Values passed between the submitter, the chain clients and the poller.
ChainClient
    Capability protocol implemented by EthereumClient and StarknetClient.
TransactionSubmitter.submit(target, kind, calldata, signer, ...)
    Send exactly one transaction and return a PendingTransaction.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, Sequence

from .errors import SubmissionError
from .signer import Layer, SignerIdentity

logger = logging.getLogger(__name__)


class OperationKind(Enum):
    INVOKE = "invoke"
    DECLARE_LEGACY = "declare_legacy"
    DECLARE_SIERRA = "declare_sierra"
    DEPLOY_VIA_UDC = "deploy_via_udc"
    DEPLOY = "deploy"  # L1 constructor deployment
    DEPLOY_ACCOUNT = "deploy_account"


class TxStatus(Enum):
    NOT_FOUND = "not_found"
    PENDING = "pending"
    INCLUDED = "included"
    REJECTED = "rejected"


@dataclass(frozen=True)
class TransactionRequest:
    """
    One transaction to send.

    target is the contract address for invokes, the deployer contract for
    DEPLOY_VIA_UDC, the account class hash for DEPLOY_ACCOUNT and None for
    declarations and L1 deployments. artifact is
    the L1Artifact / L2LegacyArtifact / L2SierraArtifact where one is needed.
    """
    kind: OperationKind
    target: str | int | None
    method: str | None
    calldata: tuple = ()
    label: str = ""
    abi: list | None = None
    artifact: Any = None
    value: int = 0
    salt: int = 0


@dataclass(frozen=True)
class ReceiptEvent:
    from_address: int | str | None
    keys: tuple = ()
    data: tuple = ()


@dataclass(frozen=True)
class Receipt:
    transaction_hash: str
    block_number: int | None = None
    contract_address: str | None = None
    events: tuple[ReceiptEvent, ...] = ()
    raw: Any = None


@dataclass(frozen=True)
class StatusReport:
    status: TxStatus
    receipt: Receipt | None = None
    reason: str | None = None


@dataclass(frozen=True)
class PendingTransaction:
    transaction_hash: str
    submitted_at: float
    layer: Layer
    kind: OperationKind
    label: str = ""
    # Known up front for declarations
    class_hash: int | None = None


@dataclass(frozen=True)
class SendResult:
    """What a chain client returns after a successful broadcast."""
    transaction_hash: str
    class_hash: int | None = None


class ChainClient(Protocol):
    layer: Layer

    def send(self, request: TransactionRequest, signer: SignerIdentity) -> SendResult:
        ...

    def get_status(self, transaction_hash: str) -> StatusReport:
        ...

    def call(self, address: str | int, method: str, args: Sequence[Any] = (), abi: list | None = None) -> Any:
        ...

    def get_balance(self, address: str | int) -> int:
        ...

    def chain_id(self) -> int:
        ...


@dataclass
class TransactionSubmitter:
    """Builds and sends single transactions. Never retries."""
    client: ChainClient
    clock: Any = field(default=time.time)

    def submit(
        self,
        target: str | int | None,
        kind: OperationKind,
        calldata: Sequence[Any],
        signer: SignerIdentity,
        *,
        method: str | None = None,
        label: str | None = None,
        abi: list | None = None,
        artifact: Any = None,
        value: int = 0,
        salt: int = 0,
    ) -> PendingTransaction:
        if signer.layer is not self.client.layer:
            raise ValueError(
                f"signer for {signer.layer.value} cannot submit to a {self.client.layer.value} client"
            )
        if kind is OperationKind.INVOKE and not method:
            raise ValueError("invoke requests need a method name")

        label = label or method or kind.value
        request = TransactionRequest(
            kind=kind,
            target=target,
            method=method,
            calldata=tuple(calldata),
            label=label,
            abi=abi,
            artifact=artifact,
            value=value,
            salt=salt,
        )

        try:
            result = self.client.send(request, signer)
        except SubmissionError:
            raise
        except Exception as e:
            raise SubmissionError(label, str(e)) from e

        logger.debug(f"{self.client.layer.value} | {label} | submitted {result.transaction_hash}")
        return PendingTransaction(
            transaction_hash=result.transaction_hash,
            submitted_at=self.clock(),
            layer=self.client.layer,
            kind=kind,
            label=label,
            class_hash=result.class_hash,
        )

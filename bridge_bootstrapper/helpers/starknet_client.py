"""
L2 chain client built on starknet.py.

Uses the synchronous facades (``*_sync``) that starknet.py generates for its
async client and account classes, so the workflow stays a plain blocking
sequence.

Public API
----------
StarknetClient(node_url, fee_token_address)
    ChainClient implementation for invokes, legacy and Sierra declarations,
    deploy_contract deployments and account deployments.
deployed_address_from_receipt(receipt)
    Address announced by the ContractDeployed event of a deploy receipt.
account_address_for_key(private_key, class_hash, salt=0)
    Counterfactual address of a single-key account.
"""
from __future__ import annotations

import logging
from typing import Any, Sequence

from starknet_py.common import create_casm_class, create_compiled_contract
from starknet_py.hash.casm_class_hash import compute_casm_class_hash
from starknet_py.hash.address import compute_address
from starknet_py.hash.class_hash import compute_class_hash
from starknet_py.hash.selector import get_selector_from_name
from starknet_py.net.account.account import Account
from starknet_py.net.client_errors import ClientError
from starknet_py.net.client_models import (
    Call,
    TransactionExecutionStatus,
    TransactionFinalityStatus,
)
from starknet_py.net.full_node_client import FullNodeClient
from starknet_py.net.signer.stark_curve_signer import KeyPair

from ..config.constants import CONTRACT_DEPLOYED_EVENT, MAX_FEE_OVERRIDE
from .errors import ClassAlreadyDeclared
from .felt import to_felt
from .signer import Layer, SignerIdentity
from .transactions import (
    OperationKind,
    Receipt,
    ReceiptEvent,
    SendResult,
    StatusReport,
    TransactionRequest,
    TxStatus,
)

logger = logging.getLogger(__name__)

# JSON-RPC error codes from the Starknet node API
TXN_HASH_NOT_FOUND = 29
CLASS_ALREADY_DECLARED = 51

CONTRACT_DEPLOYED_SELECTOR = get_selector_from_name(CONTRACT_DEPLOYED_EVENT)

_INCLUDED = {TransactionFinalityStatus.ACCEPTED_ON_L2, TransactionFinalityStatus.ACCEPTED_ON_L1}


def deployed_address_from_receipt(receipt: Receipt) -> int:
    for event in receipt.events:
        if event.keys and event.keys[0] == CONTRACT_DEPLOYED_SELECTOR:
            return event.data[0]
    raise ValueError(f"no {CONTRACT_DEPLOYED_EVENT} event in receipt of {receipt.transaction_hash}")


def account_public_key(private_key: str | int) -> int:
    return KeyPair.from_private_key(_felt(private_key)).public_key


def account_address_for_key(private_key: str | int, class_hash: int, salt: int = 0) -> int:
    """Address an account with constructor calldata [public_key] deploys to."""
    return compute_address(
        class_hash=class_hash,
        constructor_calldata=[account_public_key(private_key)],
        salt=salt,
        deployer_address=0,
    )


def _felt(value: Any) -> int:
    return value if isinstance(value, int) else to_felt(value)


class EncodingAwareAccount(Account):
    """
    Account whose __execute__ calldata encoding comes from the signer.

    starknet.py otherwise looks the Cairo version up from the class deployed
    at the account address on first use.
    """

    def __init__(self, *, cairo_version: int, **kwargs):
        super().__init__(**kwargs)
        self._fixed_cairo_version = cairo_version

    @property
    async def cairo_version(self) -> int:
        return self._fixed_cairo_version


class StarknetClient:
    layer = Layer.L2

    def __init__(self, node_url: str, fee_token_address: str | int, max_fee: int = MAX_FEE_OVERRIDE):
        self.client = FullNodeClient(node_url=node_url)
        self.fee_token_address = _felt(fee_token_address)
        self.max_fee = max_fee
        self._chain_id: int | None = None

    def _account(self, signer: SignerIdentity) -> Account:
        return EncodingAwareAccount(
            address=signer.address_int,
            client=self.client,
            key_pair=KeyPair.from_private_key(signer.key_int),
            chain=self.chain_id(),
            cairo_version=signer.execution_encoding.cairo_version,
        )

    # ------------------------------------------------------------------ #
    # Submission                                                         #
    # ------------------------------------------------------------------ #

    def send(self, request: TransactionRequest, signer: SignerIdentity) -> SendResult:
        kind = request.kind
        if kind in (OperationKind.INVOKE, OperationKind.DEPLOY_VIA_UDC):
            return self._invoke(request, signer)
        if kind is OperationKind.DECLARE_LEGACY:
            return self._declare_legacy(request, signer)
        if kind is OperationKind.DECLARE_SIERRA:
            return self._declare_sierra(request, signer)
        if kind is OperationKind.DEPLOY_ACCOUNT:
            return self._deploy_account(request, signer)
        raise ValueError(f"{kind.value} is not supported on L2")

    def _invoke(self, request: TransactionRequest, signer: SignerIdentity) -> SendResult:
        call = Call(
            to_addr=_felt(request.target),
            selector=get_selector_from_name(request.method),
            calldata=[_felt(v) for v in request.calldata],
        )
        resp = self._account(signer).execute_v1_sync(calls=[call], max_fee=self.max_fee)
        return SendResult(transaction_hash=hex(resp.transaction_hash))

    def _declare_legacy(self, request: TransactionRequest, signer: SignerIdentity) -> SendResult:
        compiled = request.artifact.read()
        class_hash = compute_class_hash(create_compiled_contract(compiled_contract=compiled))
        tx = self._account(signer).sign_declare_v1_sync(compiled_contract=compiled, max_fee=self.max_fee)
        return self._broadcast_declare(request, tx, class_hash)

    def _declare_sierra(self, request: TransactionRequest, signer: SignerIdentity) -> SendResult:
        sierra, casm = request.artifact.read()
        compiled_class_hash = compute_casm_class_hash(create_casm_class(casm))
        tx = self._account(signer).sign_declare_v2_sync(
            compiled_contract=sierra,
            compiled_class_hash=compiled_class_hash,
            max_fee=self.max_fee,
        )
        return self._broadcast_declare(request, tx, None)

    def _broadcast_declare(self, request: TransactionRequest, tx, class_hash: int | None) -> SendResult:
        try:
            resp = self.client.declare_sync(tx)
        except ClientError as e:
            if e.code == CLASS_ALREADY_DECLARED or "already declared" in str(e.message).lower():
                raise ClassAlreadyDeclared(request.label, class_hash, str(e.message)) from e
            raise
        return SendResult(transaction_hash=hex(resp.transaction_hash), class_hash=resp.class_hash)

    def _deploy_account(self, request: TransactionRequest, signer: SignerIdentity) -> SendResult:
        # signer.account_address must already be the counterfactual address
        tx = self._account(signer).sign_deploy_account_v1_sync(
            class_hash=_felt(request.target),
            contract_address_salt=request.salt,
            constructor_calldata=[_felt(v) for v in request.calldata],
            max_fee=self.max_fee,
        )
        resp = self.client.deploy_account_sync(tx)
        return SendResult(transaction_hash=hex(resp.transaction_hash))

    # ------------------------------------------------------------------ #
    # Status / reads                                                     #
    # ------------------------------------------------------------------ #

    def get_status(self, transaction_hash: str) -> StatusReport:
        try:
            rcpt = self.client.get_transaction_receipt_sync(tx_hash=transaction_hash)
        except ClientError as e:
            if e.code == TXN_HASH_NOT_FOUND or "not found" in str(e.message).lower():
                return StatusReport(TxStatus.NOT_FOUND)
            raise

        receipt = Receipt(
            transaction_hash=transaction_hash,
            block_number=getattr(rcpt, "block_number", None),
            contract_address=hex(rcpt.contract_address) if getattr(rcpt, "contract_address", None) else None,
            events=tuple(
                ReceiptEvent(from_address=ev.from_address, keys=tuple(ev.keys), data=tuple(ev.data))
                for ev in (rcpt.events or [])
            ),
            raw=rcpt,
        )
        if rcpt.execution_status == TransactionExecutionStatus.REVERTED:
            return StatusReport(TxStatus.REJECTED, receipt, reason=rcpt.revert_reason or "reverted")
        if rcpt.finality_status in _INCLUDED:
            return StatusReport(TxStatus.INCLUDED, receipt)
        return StatusReport(TxStatus.PENDING, receipt)

    def call(self, address: str | int, method: str, args: Sequence[Any] = (), abi: list | None = None) -> list[int]:
        call = Call(
            to_addr=_felt(address),
            selector=get_selector_from_name(method),
            calldata=[_felt(v) for v in args],
        )
        return list(self.client.call_contract_sync(call=call, block_number="latest"))

    def get_balance(self, address: str | int) -> int:
        low, high = self.call(self.fee_token_address, "balanceOf", [address])[:2]
        return low + (high << 128)

    def chain_id(self) -> int:
        if self._chain_id is None:
            raw = self.client.get_chain_id_sync()
            self._chain_id = int(raw, 16) if isinstance(raw, str) else int(raw)
        return self._chain_id

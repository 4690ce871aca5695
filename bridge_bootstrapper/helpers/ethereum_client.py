"""
L1 chain client built on web3.py.

Public API
----------
get_web3_instance(rpc_url)
    Return a (cached) Web3 instance connected to rpc_url.
EthereumClient(w3)
    ChainClient implementation: contract deployment and invocation signed
    with eth_account, receipt based status, read-only calls, balances.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from eth_utils import to_checksum_address
from web3 import Web3
from web3.exceptions import TransactionNotFound

from ..config.constants import L1_GAS_BUFFER, L1_GAS_FALLBACK
from ..config.network import RPC_TIMEOUT
from .signer import Layer, SignerIdentity
from .transactions import (
    OperationKind,
    Receipt,
    SendResult,
    StatusReport,
    TransactionRequest,
    TxStatus,
)

logger = logging.getLogger(__name__)

# Cached web3 instance
_w3_instance: Optional[Web3] = None


def get_web3_instance(rpc_url: str) -> Web3:
    """
    Get a Web3 instance connected to the specified RPC URL.

    Raises:
        ValueError: If rpc_url is empty
    """
    global _w3_instance

    if not rpc_url:
        raise ValueError("No L1 RPC URL available. Set ETH_RPC or pass --eth-rpc.")

    # Return cached instance if URL matches
    if _w3_instance is not None and _w3_instance.provider.endpoint_uri == rpc_url:
        return _w3_instance

    _w3_instance = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": RPC_TIMEOUT}))
    return _w3_instance


class EthereumClient:
    layer = Layer.L1

    def __init__(self, w3: Web3, priority_fee_gwei: int = 2):
        self.w3 = w3
        self.priority_fee_gwei = priority_fee_gwei

    @classmethod
    def from_url(cls, rpc_url: str, expected_chain_id: int | None = None) -> "EthereumClient":
        client = cls(get_web3_instance(rpc_url))
        if expected_chain_id:
            actual = client.chain_id()
            if actual != expected_chain_id:
                raise ValueError(f"Unexpected L1 chainId {actual}; expected {expected_chain_id}")
        return client

    # ------------------------------------------------------------------ #
    # Submission                                                         #
    # ------------------------------------------------------------------ #

    def _fee_fields(self) -> dict[str, int]:
        latest_block = self.w3.eth.get_block("latest")
        base_fee = latest_block.get("baseFeePerGas")
        if base_fee is None:
            return {"gasPrice": int(self.w3.eth.gas_price)}
        priority_fee = Web3.to_wei(self.priority_fee_gwei, "gwei")
        return {
            "maxPriorityFeePerGas": priority_fee,
            "maxFeePerGas": base_fee * 2 + priority_fee,  # generous cap
        }

    def _build(self, request: TransactionRequest, sender: str) -> dict[str, Any]:
        base_tx = {
            "from": sender,
            "nonce": self.w3.eth.get_transaction_count(sender, "pending"),
            "chainId": self.w3.eth.chain_id,
            "value": request.value,
        }
        base_tx.update(self._fee_fields())

        if request.kind is OperationKind.DEPLOY:
            artifact = request.artifact
            factory = self.w3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)
            fn = factory.constructor(*request.calldata)
        elif request.kind is OperationKind.INVOKE:
            contract = self.w3.eth.contract(address=to_checksum_address(request.target), abi=request.abi)
            fn = contract.get_function_by_name(request.method)(*request.calldata)
        else:
            raise ValueError(f"{request.kind.value} is not supported on L1")

        tx = fn.build_transaction({**base_tx, "gas": L1_GAS_FALLBACK})
        try:
            est_gas = int(self.w3.eth.estimate_gas({k: v for k, v in tx.items() if k != "gas"}))
            tx["gas"] = int(est_gas * L1_GAS_BUFFER)
        except Exception as err:  # fallback on ANY estimation failure
            logger.warning(f"{request.label} | estimate_gas failed, using {L1_GAS_FALLBACK} fallback -> {err}")
        return tx

    def send(self, request: TransactionRequest, signer: SignerIdentity) -> SendResult:
        acct = signer.eth_account()
        tx = self._build(request, acct.address)
        signed_tx = acct.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        return SendResult(transaction_hash=Web3.to_hex(tx_hash))

    # ------------------------------------------------------------------ #
    # Status / reads                                                     #
    # ------------------------------------------------------------------ #

    def get_status(self, transaction_hash: str) -> StatusReport:
        try:
            rcpt = self.w3.eth.get_transaction_receipt(transaction_hash)
        except TransactionNotFound:
            return StatusReport(TxStatus.NOT_FOUND)
        if rcpt is None:
            return StatusReport(TxStatus.PENDING)

        receipt = Receipt(
            transaction_hash=transaction_hash,
            block_number=rcpt.get("blockNumber"),
            contract_address=rcpt.get("contractAddress"),
            raw=rcpt,
        )
        if rcpt.get("status") != 1:
            return StatusReport(TxStatus.REJECTED, receipt, reason=f"execution reverted in block {rcpt.get('blockNumber')}")
        return StatusReport(TxStatus.INCLUDED, receipt)

    def call(self, address: str | int, method: str, args: Sequence[Any] = (), abi: list | None = None) -> Any:
        contract = self.w3.eth.contract(address=to_checksum_address(address), abi=abi)
        return contract.get_function_by_name(method)(*args).call()

    def get_balance(self, address: str | int) -> int:
        return int(self.w3.eth.get_balance(to_checksum_address(address)))

    def chain_id(self) -> int:
        return int(self.w3.eth.chain_id)

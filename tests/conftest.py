"""
Shared fixtures for the bootstrapper tests.

FakeL1 and FakeL2 implement the ChainClient protocol in memory. Declarations
mint fresh class hashes, L2 deployments get the address their class hash,
salt and deployer determine, balances move the way the bridge
contracts would move them, and status answers can be scripted per
transaction so the poller paths can be exercised without a node.

Sleeps are always injected as no-ops.
"""
from __future__ import annotations

import itertools
import json
from collections import defaultdict
from dataclasses import replace

import pytest
from starknet_py.hash.address import compute_address

from bridge_bootstrapper.config import constants
from bridge_bootstrapper.config.artifacts import ArtifactStore
from bridge_bootstrapper.config.settings import BootstrapConfig
from bridge_bootstrapper.helpers.executor import LayerExecutor, PollPolicy
from bridge_bootstrapper.helpers.signer import Layer, SignerIdentity
from bridge_bootstrapper.helpers.starknet_client import CONTRACT_DEPLOYED_SELECTOR
from bridge_bootstrapper.helpers.transactions import (
    OperationKind,
    Receipt,
    ReceiptEvent,
    SendResult,
    StatusReport,
    TxStatus,
)
from bridge_bootstrapper.helpers.wait_gate import CrossChainWaitGate
from bridge_bootstrapper.setup.context import BootstrapContext

# Shared across every fake so two runs never see the same address
_ADDRESSES = itertools.count(0x1000)
_TX_HASHES = itertools.count(1)

INITIAL_L1_NATIVE = 100 * 10**18
INITIAL_L1_TOKENS = 10**9


def no_sleep(_seconds: float) -> None:
    pass


class FakeClock:
    """Monotonic clock that advances only when slept on."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeChain:
    """Bookkeeping shared by both fake layers."""

    layer: Layer

    def __init__(self):
        self.sent = []
        self.receipts: dict[str, Receipt] = {}
        # tx hash -> statuses answered before the receipt is returned
        self.scripts: dict[str, list[StatusReport]] = {}
        # statuses prepended to the next submitted transaction
        self.next_script: list[StatusReport] = []
        self.fail_on: dict[str, Exception] = {}

    def invoked(self) -> list[str]:
        return [r.method for r, _ in self.sent if r.kind is OperationKind.INVOKE]

    def _tx_hash(self) -> str:
        return hex(next(_TX_HASHES))

    def _record(self, request, signer, receipt: Receipt) -> str:
        for key, error in self.fail_on.items():
            if key in (request.method, request.label):
                raise error
        self.sent.append((request, signer))
        self.receipts[receipt.transaction_hash] = receipt
        if self.next_script:
            self.scripts[receipt.transaction_hash] = list(self.next_script)
            self.next_script = []
        return receipt.transaction_hash

    def get_status(self, transaction_hash: str) -> StatusReport:
        script = self.scripts.get(transaction_hash)
        if script:
            return script.pop(0)
        if transaction_hash not in self.receipts:
            return StatusReport(TxStatus.NOT_FOUND)
        return StatusReport(TxStatus.INCLUDED, self.receipts[transaction_hash])


class FakeL1(FakeChain):
    layer = Layer.L1

    def __init__(self, l2: "FakeL2 | None" = None):
        super().__init__()
        self.l2 = l2
        self.native: dict[str, int] = defaultdict(int)
        self.tokens: dict[str, int] = defaultdict(int)
        # L1 recipient -> amounts released by L2 withdrawals, not yet claimed
        self.withdrawable: dict[str, int] = defaultdict(int)

    def send(self, request, signer):
        tx_hash = self._tx_hash()
        sender = signer.account_address.lower()
        contract_address = None

        if request.kind is OperationKind.DEPLOY:
            contract_address = "0x" + format(next(_ADDRESSES), "040x")
            if request.artifact.name == "DaiERC20":
                self.tokens[sender] += INITIAL_L1_TOKENS
        elif request.kind is OperationKind.INVOKE:
            self.native[sender] -= request.value
            self._apply(request, sender)
        else:
            raise ValueError(f"{request.kind.value} is not supported on L1")

        receipt = Receipt(transaction_hash=tx_hash, block_number=1, contract_address=contract_address)
        return SendResult(self._record(request, signer, receipt))

    def _apply(self, request, sender: str) -> None:
        args = request.calldata
        if request.method == "deposit" and self.l2 is not None:
            # ETH: (amount, l2_recipient); tokens: (token, amount, l2_recipient)
            amount, recipient = (args[0], args[1]) if len(args) == 2 else (args[1], args[2])
            if len(args) == 3:
                self.tokens[sender] -= amount
            self.l2.balances[recipient] += amount
        elif request.method == "enrollTokenBridge" and self.l2 is not None:
            self.l2.l2_tokens[int(args[0], 16)] = next(_ADDRESSES)
        elif request.method == "withdraw":
            amount, recipient = (args[0], args[1]) if len(args) == 2 else (args[1], args[2])
            recipient = recipient.lower()
            if self.withdrawable[recipient] < amount:
                raise ValueError("withdraw: no L2 message to consume")
            self.withdrawable[recipient] -= amount
            if len(args) == 2:
                self.native[recipient] += amount
            else:
                self.tokens[recipient] += amount

    def call(self, address, method, args=(), abi=None):
        if method == "balanceOf":
            return self.tokens[args[0].lower()]
        raise ValueError(f"unexpected L1 call {method}")

    def get_balance(self, address) -> int:
        return self.native[address.lower()]

    def chain_id(self) -> int:
        return 31337


class FakeL2(FakeChain):
    layer = Layer.L2

    def __init__(self):
        super().__init__()
        self.l1: FakeL1 | None = None
        self.balances: dict[int, int] = defaultdict(int)
        self.declared: dict[str, int] = {}
        self.deployed: set[int] = set()
        # L1 token (as felt) -> L2 token minted by enrollTokenBridge
        self.l2_tokens: dict[int, int] = {}

    def send(self, request, signer):
        tx_hash = self._tx_hash()
        events = ()
        class_hash = None

        if request.kind in (OperationKind.DECLARE_LEGACY, OperationKind.DECLARE_SIERRA):
            class_hash = next(_ADDRESSES)
            self.declared[request.artifact.name] = class_hash
        elif request.kind is OperationKind.DEPLOY_VIA_UDC:
            address = self._deploy(request)
            events = (ReceiptEvent(from_address=request.target, keys=(CONTRACT_DEPLOYED_SELECTOR,), data=(address,)),)
        elif request.kind is OperationKind.INVOKE:
            self._apply(request, signer)

        receipt = Receipt(transaction_hash=tx_hash, block_number=1, events=events)
        return SendResult(self._record(request, signer, receipt), class_hash=class_hash)

    def _deploy(self, request) -> int:
        # [class_hash, salt, unique, calldata_len, *calldata]
        class_hash, salt, unique = request.calldata[:3]
        deployer = 0
        if unique:
            deployer = request.target if isinstance(request.target, int) else int(request.target, 16)
        address = compute_address(
            class_hash=class_hash,
            constructor_calldata=list(request.calldata[4:]),
            salt=salt,
            deployer_address=deployer,
        )
        if address in self.deployed:
            raise ValueError(f"contract already deployed at {hex(address)}")
        self.deployed.add(address)
        return address

    def _apply(self, request, signer) -> None:
        args = request.calldata
        if request.method == "initiate_withdraw":
            recipient, amount = args[0], args[1]
        elif request.method == "initiate_token_withdraw":
            recipient, amount = args[1], args[2]
        else:
            return
        self.balances[signer.address_int] -= amount
        if self.l1 is not None:
            self.l1.withdrawable["0x" + format(recipient, "040x")] += amount

    def call(self, address, method, args=(), abi=None):
        if method == "balanceOf":
            account = args[0] if isinstance(args[0], int) else int(args[0], 16)
            return [self.balances[account], 0]
        if method == "get_l2_token":
            return [self.l2_tokens.get(args[0], 0)]
        raise ValueError(f"unexpected L2 call {method}")

    def get_balance(self, address) -> int:
        return 0

    def chain_id(self) -> int:
        return 0x4D4144415241


def write_artifacts(base) -> None:
    """Create every artifact file the pipelines load, with placeholder contents."""
    for name in dir(constants):
        value = getattr(constants, name)
        if not isinstance(value, str) or not value.endswith(".json"):
            continue
        path = base / value
        path.parent.mkdir(parents=True, exist_ok=True)
        if value.startswith("l1/"):
            path.write_text(json.dumps({"abi": [], "bytecode": {"object": "6080"}}))
        else:
            path.write_text(json.dumps({"program": {}}))


def make_context(config: BootstrapConfig, l1: FakeL1, l2: FakeL2, sleep=no_sleep) -> BootstrapContext:
    policy = PollPolicy(poll_interval=0, max_attempts=5)
    return BootstrapContext(
        config=config,
        l1=LayerExecutor(l1, SignerIdentity.for_l1(config.eth_priv_key), policy, sleep=sleep),
        l2=LayerExecutor(l2, SignerIdentity.for_l2(config.rollup_priv_key, config.l2_bootstrap_account), policy, sleep=sleep),
        artifacts=ArtifactStore(config.artifacts_dir),
        wait_gate=CrossChainWaitGate(sleep=sleep),
    )


@pytest.fixture
def chains():
    l2 = FakeL2()
    l1 = FakeL1(l2)
    l2.l1 = l1
    return l1, l2


@pytest.fixture
def artifacts_dir(tmp_path):
    base = tmp_path / "artifacts"
    write_artifacts(base)
    return base


@pytest.fixture
def dev_config(tmp_path, artifacts_dir):
    return BootstrapConfig(
        dev=True,
        artifacts_dir=artifacts_dir,
        addresses_file=tmp_path / "addresses.json",
        l1_wait_time=0,
        cross_chain_wait_time=0,
        declare_wait_time=0,
    )


@pytest.fixture
def prod_config(dev_config):
    return replace(dev_config, dev=False)


@pytest.fixture
def dev_ctx(dev_config, chains):
    l1, l2 = chains
    l1.native[SignerIdentity.for_l1(dev_config.eth_priv_key).account_address.lower()] = INITIAL_L1_NATIVE
    return make_context(dev_config, l1, l2)


@pytest.fixture
def prod_ctx(prod_config, chains):
    l1, l2 = chains
    l1.native[SignerIdentity.for_l1(prod_config.eth_priv_key).account_address.lower()] = INITIAL_L1_NATIVE
    return make_context(prod_config, l1, l2)

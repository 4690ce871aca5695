"""
Everything a pipeline needs to build its steps: configuration, one executor
per layer, the wait gate and the artifact store.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from ..config.artifacts import ArtifactStore
from ..config.settings import BootstrapConfig
from ..helpers.ethereum_client import EthereumClient
from ..helpers.executor import LayerExecutor, PollPolicy
from ..helpers.felt import get_bridge_init_configs
from ..helpers.signer import SignerIdentity
from ..helpers.starknet_client import StarknetClient
from ..helpers.wait_gate import CrossChainWaitGate
from ..helpers.verifier import BalanceReader

logger = logging.getLogger(__name__)


@dataclass
class BootstrapContext:
    config: BootstrapConfig
    l1: LayerExecutor
    l2: LayerExecutor
    artifacts: ArtifactStore
    wait_gate: CrossChainWaitGate

    @property
    def dev(self) -> bool:
        return self.config.dev

    @property
    def balances(self) -> BalanceReader:
        return BalanceReader(self.l1.client, self.l2.client)

    def bridge_init_configs(self) -> tuple[int, int]:
        return get_bridge_init_configs(self.config)

    def pause_between_declarations(self) -> None:
        self.wait_gate.wait_for_cross_chain_effect(self.config.declare_wait_time, reason="declaration settle time")

    def with_l2_signer(self, signer: SignerIdentity) -> "BootstrapContext":
        """Same context, L2 transactions signed by ``signer``."""
        l2 = LayerExecutor(self.l2.client, signer, self.l2.policy, sleep=self.l2.sleep)
        return BootstrapContext(self.config, self.l1, l2, self.artifacts, self.wait_gate)


def build_context(
    config: BootstrapConfig,
    l2_account_address: str | int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> BootstrapContext:
    """Connect to both layers and build the executors for a live run."""
    l1_client = EthereumClient.from_url(config.eth_rpc, expected_chain_id=config.eth_chain_id)
    l2_client = StarknetClient(config.rollup_seq_url, config.fee_token_address)

    l1_signer = SignerIdentity.for_l1(config.eth_priv_key)
    l2_signer = SignerIdentity.for_l2(config.rollup_priv_key, l2_account_address or config.l2_bootstrap_account)

    l1 = LayerExecutor(
        l1_client,
        l1_signer,
        PollPolicy(config.l1_poll_interval, config.l1_max_attempts, config.not_found_tolerance),
        sleep=sleep,
    )
    l2 = LayerExecutor(
        l2_client,
        l2_signer,
        PollPolicy(config.l2_poll_interval, config.l2_max_attempts, config.not_found_tolerance),
        sleep=sleep,
    )
    logger.info(f"L1 deployer {l1_signer.account_address} | L2 account {l2_signer.account_address}")
    return BootstrapContext(
        config=config,
        l1=l1,
        l2=l2,
        artifacts=ArtifactStore(config.artifacts_dir),
        wait_gate=CrossChainWaitGate(sleep=sleep),
    )

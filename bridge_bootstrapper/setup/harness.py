"""
Deposit / withdraw acceptance tests for the deployed bridges.

Each test drives one full round trip (L1 deposit, L2 withdraw initiation, L1
withdraw) and asserts the balance deltas on both sides. Cross-chain effects
are waited for with the fixed wait gate, or, when ``poll_balances`` is set,
by polling the destination balance until it moves.
"""
from __future__ import annotations

import logging
from typing import Callable

from ..config.abis import ERC20_ABI, ETH_BRIDGE_ABI, TOKEN_BRIDGE_ABI
from ..config.constants import ETH_DEPOSIT_FEE, TOKEN_APPROVE_AMOUNT, TOKEN_DEPOSIT_FEE
from ..helpers.felt import l1_address_to_felt
from ..helpers.verifier import BalanceSnapshot, assert_balance_delta
from . import eth_bridge, token_bridge
from .context import BootstrapContext
from .sequencer import AddressBook

logger = logging.getLogger(__name__)

DEPOSIT_AMOUNT = 10
WITHDRAW_AMOUNT = 5

# Poll cadence for poll_balances
BALANCE_POLL_INTERVAL = 5.0


class BridgeHarness:
    def __init__(self, ctx: BootstrapContext, book: AddressBook, poll_balances: bool = False):
        self.ctx = ctx
        self.book = book
        self.poll_balances = poll_balances
        self.balances = ctx.balances

    @property
    def cross_chain_delay(self) -> float:
        return self.ctx.config.cross_chain_wait_time + self.ctx.config.l1_wait_time

    def _wait(self, read: Callable[[], BalanceSnapshot], target: int, reason: str) -> None:
        if self.poll_balances:
            self.ctx.wait_gate.wait_until(
                lambda: read().amount >= target,
                timeout=self.cross_chain_delay,
                poll_interval=BALANCE_POLL_INTERVAL,
                reason=reason,
            )
        else:
            self.ctx.wait_gate.wait_for_cross_chain_effect(self.cross_chain_delay, reason=reason)

    def _relay_wait(self, reason: str) -> None:
        self.ctx.wait_gate.wait_for_cross_chain_effect(self.cross_chain_delay, reason=reason)

    # ------------------------------------------------------------------ #
    # ETH bridge                                                         #
    # ------------------------------------------------------------------ #

    def run_eth_bridge_test(self, amount: int = DEPOSIT_AMOUNT, withdraw_amount: int = WITHDRAW_AMOUNT) -> None:
        ctx = self.ctx
        l1_bridge = self.book[eth_bridge.L1_BRIDGE_KEY].hex
        l2_bridge = self.book[eth_bridge.L2_BRIDGE_KEY].address
        l2_token = self.book[eth_bridge.L2_TOKEN_KEY].address
        l2_account = ctx.l2.address
        l1_recipient = ctx.l1.address

        def read_l2() -> BalanceSnapshot:
            return self.balances.erc20_l2(l2_token, l2_account)

        before = read_l2()
        ctx.l1.invoke(
            l1_bridge,
            "deposit",
            [amount, int(l2_account, 16)],
            abi=ETH_BRIDGE_ABI,
            value=amount + ETH_DEPOSIT_FEE,
            label="ETH bridge deposit",
        )
        self._wait(read_l2, before.amount + amount, "ETH deposit to L2")
        assert_balance_delta(l2_account, before, read_l2(), amount)
        logger.info(f"ETH deposit of {amount} observed on L2")

        ctx.l2.invoke(
            l2_bridge,
            "initiate_withdraw",
            [l1_address_to_felt(l1_recipient), withdraw_amount, 0],
            label="ETH l2 bridge initiate_withdraw",
        )
        self._relay_wait("ETH withdrawal message to L1")

        before = self.balances.native_l1(l1_recipient)
        ctx.l1.invoke(
            l1_bridge,
            "withdraw",
            [withdraw_amount, l1_recipient],
            abi=ETH_BRIDGE_ABI,
            label="ETH bridge withdraw",
        )
        assert_balance_delta(l1_recipient, before, self.balances.native_l1(l1_recipient), withdraw_amount)
        logger.info(f"ETH withdrawal of {withdraw_amount} observed on L1")

    # ------------------------------------------------------------------ #
    # ERC20 bridge                                                       #
    # ------------------------------------------------------------------ #

    def run_erc20_bridge_test(self, amount: int = DEPOSIT_AMOUNT, withdraw_amount: int = WITHDRAW_AMOUNT) -> None:
        ctx = self.ctx
        l1_token = self.book[token_bridge.L1_TOKEN_KEY].hex
        l1_bridge = self.book[token_bridge.L1_BRIDGE_KEY].hex
        l2_bridge = self.book[token_bridge.L2_BRIDGE_KEY].address
        l2_token = self.book[token_bridge.L2_TOKEN_KEY].address
        l2_account = ctx.l2.address
        l1_recipient = ctx.l1.address

        def read_l2() -> BalanceSnapshot:
            return self.balances.erc20_l2(l2_token, l2_account)

        ctx.l1.invoke(l1_token, "approve", [l1_bridge, TOKEN_APPROVE_AMOUNT], abi=ERC20_ABI, label="test token approve")

        before = read_l2()
        ctx.l1.invoke(
            l1_bridge,
            "deposit",
            [l1_token, amount, int(l2_account, 16)],
            abi=TOKEN_BRIDGE_ABI,
            value=TOKEN_DEPOSIT_FEE,
            label="token bridge deposit",
        )
        self._wait(read_l2, before.amount + amount, "token deposit to L2")
        assert_balance_delta(l2_account, before, read_l2(), amount)
        logger.info(f"Token deposit of {amount} observed on L2")

        ctx.l2.invoke(
            l2_bridge,
            "initiate_token_withdraw",
            [l1_address_to_felt(l1_token), l1_address_to_felt(l1_recipient), withdraw_amount, 0],
            label="L2 token bridge initiate_token_withdraw",
        )
        self._relay_wait("token withdrawal message to L1")

        before = self.balances.erc20_l1(l1_token, l1_recipient)
        ctx.l1.invoke(
            l1_bridge,
            "withdraw",
            [l1_token, withdraw_amount, l1_recipient],
            abi=TOKEN_BRIDGE_ABI,
            label="token bridge withdraw",
        )
        assert_balance_delta(l1_recipient, before, self.balances.erc20_l1(l1_token, l1_recipient), withdraw_amount)
        logger.info(f"Token withdrawal of {withdraw_amount} observed on L1")

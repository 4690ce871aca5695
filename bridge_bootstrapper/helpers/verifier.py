"""
Balance reads and delta assertions used by the bridge test harness.

Reads are single-shot: a failing read propagates, it is never retried.
"""
from __future__ import annotations

from dataclasses import dataclass

from ..config.abis import ERC20_ABI
from ..config.constants import NATIVE_UNIT
from .errors import BalanceMismatch
from .felt import from_uint256
from .signer import Layer
from .transactions import ChainClient

NATIVE = "native"


@dataclass(frozen=True)
class BalanceSnapshot:
    account: str
    asset: str  # NATIVE or a token address
    amount: int
    layer: Layer

    @property
    def is_native(self) -> bool:
        return self.asset == NATIVE


class BalanceReader:
    """Fresh balance snapshots from the L1 and L2 clients."""

    def __init__(self, l1: ChainClient | None = None, l2: ChainClient | None = None):
        self.l1 = l1
        self.l2 = l2

    def native_l1(self, address: str) -> BalanceSnapshot:
        amount = self.l1.get_balance(address)
        return BalanceSnapshot(account=address, asset=NATIVE, amount=int(amount), layer=Layer.L1)

    def erc20_l1(self, token: str, address: str) -> BalanceSnapshot:
        amount = self.l1.call(token, "balanceOf", [address], abi=ERC20_ABI)
        return BalanceSnapshot(account=address, asset=token, amount=int(amount), layer=Layer.L1)

    def erc20_l2(self, token: int | str, account: int | str) -> BalanceSnapshot:
        result = self.l2.call(token, "balanceOf", [account])
        # Cairo ERC20s answer with a (low, high) uint256
        low = result[0]
        high = result[1] if len(result) > 1 else 0
        return BalanceSnapshot(
            account=hex(account) if isinstance(account, int) else account,
            asset=hex(token) if isinstance(token, int) else token,
            amount=from_uint256(low, high),
            layer=Layer.L2,
        )


def assert_balance_delta(
    account: str,
    before: BalanceSnapshot,
    after: BalanceSnapshot,
    expected_delta: int,
) -> None:
    """
    Assert ``after == before + expected_delta``.

    Token balances must match exactly. Native balances are compared after
    integer division by 10**18 so gas fees paid in between do not count.

    Raises:
        BalanceMismatch: on mismatch
        ValueError: snapshots refer to different accounts or assets
    """
    if before.asset != after.asset or before.account != after.account:
        raise ValueError("before/after snapshots must be for the same account and asset")

    expected = before.amount + expected_delta
    if before.is_native:
        ok = after.amount // NATIVE_UNIT == expected // NATIVE_UNIT
    else:
        ok = after.amount == expected

    if not ok:
        raise BalanceMismatch(account, expected, after.amount, before.asset)

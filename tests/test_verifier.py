"""Balance snapshots and delta assertions."""
import pytest

from bridge_bootstrapper.helpers.errors import BalanceMismatch
from bridge_bootstrapper.helpers.signer import Layer
from bridge_bootstrapper.helpers.verifier import NATIVE, BalanceReader, BalanceSnapshot, assert_balance_delta

from conftest import FakeL1, FakeL2

ACCOUNT = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
TOKEN = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


def token(amount):
    return BalanceSnapshot(ACCOUNT, TOKEN, amount, Layer.L1)


def native(amount):
    return BalanceSnapshot(ACCOUNT, NATIVE, amount, Layer.L1)


def test_token_delta_must_be_exact():
    assert_balance_delta(ACCOUNT, token(1000), token(1010), 10)


def test_token_off_by_one_fails():
    with pytest.raises(BalanceMismatch) as exc_info:
        assert_balance_delta(ACCOUNT, token(1000), token(1009), 10)
    assert exc_info.value.expected == 1010
    assert exc_info.value.actual == 1009


def test_native_delta_compared_in_whole_units():
    assert_balance_delta(ACCOUNT, native(10**18), native(6 * 10**18 + 3), 5 * 10**18)


def test_native_tolerance_absorbs_gas():
    # 0.01 ether of gas spent between the two reads
    assert_balance_delta(ACCOUNT, native(10 * 10**18 + 5 * 10**17), native(15 * 10**18 + 5 * 10**17 - 10**16), 5 * 10**18)


def test_native_whole_unit_mismatch_fails():
    with pytest.raises(BalanceMismatch):
        assert_balance_delta(ACCOUNT, native(10**18), native(5 * 10**18), 5 * 10**18)


def test_balance_mismatch_is_an_assertion_error():
    with pytest.raises(AssertionError):
        assert_balance_delta(ACCOUNT, token(0), token(1), 2)


def test_snapshots_of_different_assets_are_refused():
    with pytest.raises(ValueError):
        assert_balance_delta(ACCOUNT, token(1), native(1), 0)


def test_reader_returns_fresh_snapshots():
    l2 = FakeL2()
    l1 = FakeL1(l2)
    reader = BalanceReader(l1, l2)
    l1.native[ACCOUNT.lower()] = 7
    l1.tokens[ACCOUNT.lower()] = 11
    l2.balances[0x123] = 5

    assert reader.native_l1(ACCOUNT).amount == 7
    assert reader.native_l1(ACCOUNT).is_native
    assert reader.erc20_l1(TOKEN, ACCOUNT).amount == 11

    l1.native[ACCOUNT.lower()] = 8
    assert reader.native_l1(ACCOUNT).amount == 8

    snapshot = reader.erc20_l2(0x49D, 0x123)
    assert snapshot.amount == 5
    assert snapshot.account == "0x123"
    assert snapshot.layer is Layer.L2

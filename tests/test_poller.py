"""Confirmation polling against scripted status answers."""
import pytest

from bridge_bootstrapper.helpers.errors import ConfirmationTimeout, ReceiptUnavailable, TransactionRejected
from bridge_bootstrapper.helpers.poller import await_confirmation
from bridge_bootstrapper.helpers.signer import Layer
from bridge_bootstrapper.helpers.transactions import (
    OperationKind,
    PendingTransaction,
    Receipt,
    StatusReport,
    TxStatus,
)


class ScriptedClient:
    layer = Layer.L2

    def __init__(self, statuses):
        self.statuses = list(statuses)
        self.calls = 0

    def get_status(self, transaction_hash):
        self.calls += 1
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]


def pending(tx_hash="0xabc"):
    return PendingTransaction(tx_hash, submitted_at=0.0, layer=Layer.L2, kind=OperationKind.INVOKE, label="test tx")


NOT_FOUND = StatusReport(TxStatus.NOT_FOUND)
PENDING = StatusReport(TxStatus.PENDING)


def included(tx_hash="0xabc"):
    return StatusReport(TxStatus.INCLUDED, Receipt(transaction_hash=tx_hash, block_number=7))


def test_not_found_answers_below_budget_are_pending():
    sleeps = []
    client = ScriptedClient([NOT_FOUND, NOT_FOUND, NOT_FOUND, included()])

    receipt = await_confirmation(client, pending(), poll_interval=2.0, max_attempts=10, sleep=sleeps.append)

    assert receipt.block_number == 7
    assert client.calls == 4
    assert sleeps == [2.0, 2.0, 2.0]


def test_pending_then_included():
    client = ScriptedClient([PENDING, included()])
    receipt = await_confirmation(client, pending(), poll_interval=0, max_attempts=3, sleep=lambda s: None)
    assert receipt.transaction_hash == "0xabc"


def test_rejected_raises_with_reason():
    client = ScriptedClient([PENDING, StatusReport(TxStatus.REJECTED, reason="execution reverted")])

    with pytest.raises(TransactionRejected) as exc_info:
        await_confirmation(client, pending(), poll_interval=0, max_attempts=5, sleep=lambda s: None)

    assert exc_info.value.tx_hash == "0xabc"
    assert "execution reverted" in str(exc_info.value)
    assert "test tx" in str(exc_info.value)


def test_included_without_receipt_is_an_error():
    client = ScriptedClient([PENDING, StatusReport(TxStatus.INCLUDED, None)])

    with pytest.raises(ReceiptUnavailable) as exc_info:
        await_confirmation(client, pending(), poll_interval=0, max_attempts=5, sleep=lambda s: None)

    assert exc_info.value.tx_hash == "0xabc"
    assert "test tx" in str(exc_info.value)
    assert client.calls == 2


def test_exhausted_attempts_time_out():
    sleeps = []
    client = ScriptedClient([PENDING])

    with pytest.raises(ConfirmationTimeout) as exc_info:
        await_confirmation(client, pending(), poll_interval=1.0, max_attempts=4, sleep=sleeps.append)

    assert exc_info.value.attempts == 4
    assert client.calls == 4
    # no sleep after the final attempt
    assert len(sleeps) == 3


def test_not_found_tolerance_exceeded():
    client = ScriptedClient([NOT_FOUND])

    with pytest.raises(ConfirmationTimeout) as exc_info:
        await_confirmation(
            client, pending(), poll_interval=0, max_attempts=50, not_found_tolerance=2, sleep=lambda s: None
        )

    assert client.calls == 3
    assert "not found" in str(exc_info.value)


def test_not_found_within_tolerance_then_included():
    client = ScriptedClient([NOT_FOUND, NOT_FOUND, included()])
    receipt = await_confirmation(
        client, pending(), poll_interval=0, max_attempts=5, not_found_tolerance=2, sleep=lambda s: None
    )
    assert receipt is not None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"poll_interval": 1.0, "max_attempts": 0},
        {"poll_interval": -1.0, "max_attempts": 3},
        {"poll_interval": 1.0, "max_attempts": 3, "not_found_tolerance": -1},
    ],
)
def test_invalid_policy_rejected(kwargs):
    with pytest.raises(ValueError):
        await_confirmation(ScriptedClient([included()]), pending(), **kwargs)

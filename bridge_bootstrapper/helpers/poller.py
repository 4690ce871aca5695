"""
Confirmation polling.

Public API
----------
await_confirmation(client, pending, poll_interval, max_attempts, ...)
    Block until the pending transaction is included, rejected, or the
    attempt budget runs out.
"""
from __future__ import annotations

import logging
import time
from typing import Callable

from .errors import ConfirmationTimeout, ReceiptUnavailable, TransactionRejected
from .transactions import ChainClient, PendingTransaction, Receipt, TxStatus

logger = logging.getLogger(__name__)


def await_confirmation(
    client: ChainClient,
    pending: PendingTransaction,
    poll_interval: float,
    max_attempts: int,
    *,
    not_found_tolerance: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Receipt:
    """
    Poll the transaction status until it reaches a terminal state.

    A hash the node has not indexed yet counts as pending. At most
    ``not_found_tolerance`` such answers are accepted (defaults to the whole
    attempt budget); past that the transaction is considered lost.

    Raises:
        TransactionRejected: the chain reports a revert or rejection
        ConfirmationTimeout: max_attempts exhausted, or the hash never showed up
        ReceiptUnavailable: included, but the node handed back no receipt
        ValueError: invalid poll_interval / max_attempts
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    if poll_interval < 0:
        raise ValueError("poll_interval must be >= 0")
    if not_found_tolerance is not None and not_found_tolerance < 0:
        raise ValueError("not_found_tolerance must be >= 0")

    tx_hash = pending.transaction_hash
    not_found = 0

    for attempt in range(1, max_attempts + 1):
        report = client.get_status(tx_hash)

        if report.status is TxStatus.INCLUDED:
            if report.receipt is None:
                raise ReceiptUnavailable(tx_hash, label=pending.label)
            logger.debug(f"{pending.label} | {tx_hash} included after {attempt} attempt(s)")
            return report.receipt

        if report.status is TxStatus.REJECTED:
            raise TransactionRejected(tx_hash, report.reason or "unknown reason", label=pending.label)

        if report.status is TxStatus.NOT_FOUND:
            not_found += 1
            if not_found_tolerance is not None and not_found > not_found_tolerance:
                raise ConfirmationTimeout(
                    tx_hash,
                    attempt,
                    label=pending.label,
                    detail=f"not found by the node {not_found} times",
                )

        if attempt < max_attempts:
            sleep(poll_interval)

    raise ConfirmationTimeout(tx_hash, max_attempts, label=pending.label)

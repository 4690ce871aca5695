"""Exception hierarchy for bootstrap runs.

Every error raised on purpose by this package derives from BootstrapError so
the CLI can report it at the command boundary.
"""
from __future__ import annotations


class BootstrapError(Exception):
    """Base class for all bootstrapper errors."""


class SubmissionError(BootstrapError):
    """Transport or signing failure before a transaction hash exists."""

    def __init__(self, label: str, message: str):
        self.label = label
        self.message = message
        super().__init__(f"{label}: submission failed: {message}")


class ClassAlreadyDeclared(SubmissionError):
    """The node already knows the class being declared."""

    def __init__(self, label: str, class_hash: int | None = None, message: str = "class already declared"):
        self.class_hash = class_hash
        super().__init__(label, message)


class TransactionRejected(BootstrapError):
    """The chain reported the transaction as reverted or rejected."""

    def __init__(self, tx_hash: str, reason: str, label: str | None = None):
        self.tx_hash = tx_hash
        self.reason = reason
        self.label = label
        prefix = f"{label}: " if label else ""
        super().__init__(f"{prefix}transaction {tx_hash} rejected: {reason}")


class ConfirmationTimeout(BootstrapError):
    """Polling ran out of attempts before the transaction reached a terminal state."""

    def __init__(self, tx_hash: str, attempts: int, label: str | None = None, detail: str | None = None):
        self.tx_hash = tx_hash
        self.attempts = attempts
        self.label = label
        prefix = f"{label}: " if label else ""
        msg = f"{prefix}transaction {tx_hash} not confirmed after {attempts} attempts"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class ReceiptUnavailable(BootstrapError):
    """The node reported the transaction as included but returned no receipt."""

    def __init__(self, tx_hash: str, label: str | None = None):
        self.tx_hash = tx_hash
        self.label = label
        prefix = f"{label}: " if label else ""
        super().__init__(f"{prefix}transaction {tx_hash} included but the node returned no receipt")


class CrossChainEffectNotObserved(BootstrapError):
    """A polled cross-chain condition did not hold before the timeout."""


class StepFailed(BootstrapError):
    """A sequencer step raised. Carries the step name and the underlying error."""

    def __init__(self, step: str, cause: BaseException, pipeline: str | None = None):
        self.step = step
        self.cause = cause
        self.pipeline = pipeline
        where = f"{pipeline}/{step}" if pipeline else step
        super().__init__(f"step '{where}' failed: {cause}")


class UnresolvedDependency(BootstrapError):
    """A step asked for a value that no earlier step produced."""

    def __init__(self, step: str, missing: list[str]):
        self.step = step
        self.missing = missing
        super().__init__(f"step '{step}' requires unresolved keys: {', '.join(missing)}")


class PhaseOrderError(BootstrapError):
    """Steps would skip or rewind a bridge phase, or the run did not reach READY."""


class BalanceMismatch(BootstrapError, AssertionError):
    """A balance did not move by the expected amount."""

    def __init__(self, account: str, expected: int, actual: int, asset: str):
        self.account = account
        self.expected = expected
        self.actual = actual
        self.asset = asset
        super().__init__(
            f"balance of {account} ({asset}) is {actual}, expected {expected}"
        )

"""
Deployment step sequencer.

Runs an ordered list of named steps, threading an immutable AddressBook from
one step to the next. Steps run strictly one at a time; a step only sees the
entries produced by steps that already returned, and a failing step aborts
the whole run.

Bridge pipelines tag their steps with a BridgePhase, upgrade pipelines with an
UpgradePhase. The sequencer refuses to skip or rewind a phase and requires a
phased run to end in READY.

Progress is reported as StepEvent values to an injected observer.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping, Protocol, Sequence

from ..config.logging_config import log_step_event
from ..helpers.checkpoint import save_entries
from ..helpers.errors import BootstrapError, PhaseOrderError, StepFailed, UnresolvedDependency
from ..helpers.signer import Layer


class BridgePhase(IntEnum):
    NOT_STARTED = 0
    L1_CONTRACTS_DEPLOYED = 1
    L2_CONTRACTS_DEPLOYED = 2
    L1_INITIALIZED = 3
    L2_INITIALIZED = 4
    L1_BRIDGE_CONFIGURED = 5
    L2_BRIDGE_CONFIGURED = 6
    READY = 7


class UpgradePhase(IntEnum):
    NOT_STARTED = 0
    IMPLEMENTATION_DEPLOYED = 1
    IMPLEMENTATION_ADDED = 2
    UPGRADED = 3
    READY = 4


@dataclass(frozen=True)
class DeployedContractRef:
    address: str | int
    layer: Layer
    class_hash: int | None = None

    @property
    def hex(self) -> str:
        return self.address if isinstance(self.address, str) else hex(self.address)

    def to_json(self) -> dict[str, Any]:
        data = {"address": self.hex, "layer": self.layer.value}
        if self.class_hash is not None:
            data["class_hash"] = hex(self.class_hash)
        return data

    def __str__(self) -> str:
        return self.hex


class AddressBook(Mapping[str, Any]):
    """Immutable mapping of labels to addresses, class hashes and values."""

    def __init__(self, entries: Mapping[str, Any] | None = None):
        self._entries = MappingProxyType(dict(entries or {}))

    def __getitem__(self, key: str) -> Any:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"AddressBook({dict(self._entries)!r})"

    def with_entries(self, entries: Mapping[str, Any]) -> "AddressBook":
        merged = dict(self._entries)
        merged.update(entries)
        return AddressBook(merged)

    def addresses(self) -> set[str]:
        """Every contract address held in the book, normalised to lower-case hex."""
        return {v.hex.lower() for v in self._entries.values() if isinstance(v, DeployedContractRef)}


# Name kept for readers coming from the workflow description
FinalAddressSet = AddressBook


@dataclass(frozen=True)
class WorkflowStep:
    name: str
    operation: Callable[[AddressBook], Mapping[str, Any] | None]
    requires: tuple[str, ...] = ()
    phase: IntEnum | None = None


class EventStatus(Enum):
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    PHASE = "phase"


@dataclass(frozen=True)
class StepEvent:
    pipeline: str
    step: str
    status: EventStatus
    phase: IntEnum | None = None
    entries: Mapping[str, Any] = field(default_factory=dict)
    error: str | None = None
    elapsed: float | None = None


class SequencerObserver(Protocol):
    def on_event(self, event: StepEvent) -> None:
        ...


class RecordingObserver:
    """Keeps every event in memory."""

    def __init__(self):
        self.events: list[StepEvent] = []

    def on_event(self, event: StepEvent) -> None:
        self.events.append(event)

    def step_names(self, status: EventStatus = EventStatus.COMPLETED) -> list[str]:
        return [e.step for e in self.events if e.status is status]


class LoggingObserver:
    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("bridge_bootstrapper")

    def on_event(self, event: StepEvent) -> None:
        log_step_event(self.logger, event)


class CheckpointObserver:
    """Writes the entries of every completed step to the checkpoint file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def on_event(self, event: StepEvent) -> None:
        if event.status is EventStatus.COMPLETED and event.entries:
            save_entries(self.path, dict(event.entries))


class CompositeObserver:
    def __init__(self, *observers: SequencerObserver):
        self.observers = observers

    def on_event(self, event: StepEvent) -> None:
        for observer in self.observers:
            observer.on_event(event)


class _NullObserver:
    def on_event(self, event: StepEvent) -> None:
        pass


class StepSequencer:
    def __init__(self, pipeline: str, observer: SequencerObserver | None = None, clock: Callable[[], float] = time.monotonic):
        self.pipeline = pipeline
        self.observer = observer or _NullObserver()
        self.clock = clock

    def _emit(self, step: str, status: EventStatus, **kwargs) -> None:
        self.observer.on_event(StepEvent(pipeline=self.pipeline, step=step, status=status, **kwargs))

    def _abort(self, step: WorkflowStep, error: BootstrapError) -> BootstrapError:
        self._emit(step.name, EventStatus.FAILED, phase=step.phase, error=str(error))
        return error

    def _check_phase(self, step: WorkflowStep, current: IntEnum) -> IntEnum:
        if step.phase is None:
            return current
        if type(step.phase) is not type(current):
            raise PhaseOrderError(
                f"{self.pipeline}: step '{step.name}' mixes {type(step.phase).__name__} "
                f"into a {type(current).__name__} pipeline"
            )
        if step.phase < current or step.phase > current + 1:
            raise PhaseOrderError(
                f"{self.pipeline}: step '{step.name}' targets {step.phase.name} "
                f"but the pipeline is at {current.name}"
            )
        if step.phase != current:
            self._emit(step.name, EventStatus.PHASE, phase=step.phase)
        return step.phase

    def run(self, steps: Sequence[WorkflowStep], initial: AddressBook | Mapping[str, Any] | None = None) -> AddressBook:
        book = initial if isinstance(initial, AddressBook) else AddressBook(initial)

        names = [s.name for s in steps]
        if len(set(names)) != len(names):
            raise ValueError(f"{self.pipeline}: duplicate step names")

        # Phased pipelines start at the lowest member of their phase enum and must end at the highest
        phase_type = next((type(s.phase) for s in steps if s.phase is not None), None)
        phase = min(phase_type) if phase_type else BridgePhase.NOT_STARTED

        for step in steps:
            missing = [k for k in step.requires if k not in book]
            if missing:
                raise self._abort(step, UnresolvedDependency(step.name, missing))
            try:
                phase = self._check_phase(step, phase)
            except PhaseOrderError as e:
                raise self._abort(step, e)

            self._emit(step.name, EventStatus.STARTED, phase=step.phase)
            started = self.clock()
            try:
                produced = step.operation(book) or {}
            except Exception as e:
                self._emit(step.name, EventStatus.FAILED, phase=step.phase, error=str(e), elapsed=self.clock() - started)
                raise StepFailed(step.name, e, pipeline=self.pipeline) from e

            unresolved = [k for k, v in produced.items() if v is None]
            if unresolved:
                raise self._abort(step, UnresolvedDependency(step.name, unresolved))

            book = book.with_entries(produced)
            self._emit(
                step.name,
                EventStatus.COMPLETED,
                phase=step.phase,
                entries=dict(produced),
                elapsed=self.clock() - started,
            )

        if phase_type and phase is not max(phase_type):
            raise self._abort(
                steps[-1],
                PhaseOrderError(f"{self.pipeline}: finished at {phase.name}, expected {max(phase_type).name}"),
            )
        return book

"""Step sequencing, phase ordering and observer events."""
import json
import logging

import pytest

from bridge_bootstrapper.config.logging_config import log_step_event
from bridge_bootstrapper.helpers.errors import PhaseOrderError, StepFailed, TransactionRejected, UnresolvedDependency
from bridge_bootstrapper.helpers.signer import Layer
from bridge_bootstrapper.setup.sequencer import (
    AddressBook,
    BridgePhase,
    CheckpointObserver,
    CompositeObserver,
    DeployedContractRef,
    EventStatus,
    LoggingObserver,
    RecordingObserver,
    StepEvent,
    StepSequencer,
    WorkflowStep,
    UpgradePhase,
)

P = BridgePhase


def produce(**entries):
    return lambda book: entries


def full_phase_run():
    return [
        WorkflowStep("deploy_l1", produce(l1=DeployedContractRef("0x" + "aa" * 20, Layer.L1)), phase=P.L1_CONTRACTS_DEPLOYED),
        WorkflowStep("deploy_l2", produce(l2=DeployedContractRef(0xBB, Layer.L2, 0xC)), phase=P.L2_CONTRACTS_DEPLOYED),
        WorkflowStep("init_l1", produce(), requires=("l1",), phase=P.L1_INITIALIZED),
        WorkflowStep("init_l2", produce(), requires=("l2",), phase=P.L2_INITIALIZED),
        WorkflowStep("configure_l1", produce(), requires=("l1", "l2"), phase=P.L1_BRIDGE_CONFIGURED),
        WorkflowStep("configure_l2", produce(), requires=("l1", "l2"), phase=P.L2_BRIDGE_CONFIGURED),
        WorkflowStep("link", produce(), phase=P.READY),
    ]


def test_entries_are_threaded_between_steps():
    seen = {}

    def second(book):
        seen.update(book)
        return {"b": book["a"] + 1}

    book = StepSequencer("demo").run(
        [WorkflowStep("first", produce(a=1)), WorkflowStep("second", second, requires=("a",))]
    )

    assert seen == {"a": 1}
    assert dict(book) == {"a": 1, "b": 2}


def test_step_only_sees_entries_of_earlier_steps():
    seen = []

    def first(book):
        seen.append(set(book))
        return {"a": 1}

    StepSequencer("demo").run([WorkflowStep("first", first), WorkflowStep("second", produce(b=2))], {"seed": 0})
    assert seen == [{"seed"}]


def test_missing_dependency_stops_before_running():
    observer = RecordingObserver()
    ran = []
    steps = [
        WorkflowStep("first", produce(a=1)),
        WorkflowStep("second", lambda book: ran.append("second"), requires=("a", "missing")),
    ]

    with pytest.raises(UnresolvedDependency) as exc_info:
        StepSequencer("demo", observer).run(steps)

    assert exc_info.value.step == "second"
    assert exc_info.value.missing == ["missing"]
    assert ran == []
    failed = [e for e in observer.events if e.status is EventStatus.FAILED]
    assert [e.step for e in failed] == ["second"]
    assert "missing" in failed[0].error


def test_step_producing_none_is_unresolved():
    observer = RecordingObserver()

    with pytest.raises(UnresolvedDependency):
        StepSequencer("demo", observer).run([WorkflowStep("first", produce(address=None))])

    assert [(e.step, e.status) for e in observer.events] == [
        ("first", EventStatus.STARTED),
        ("first", EventStatus.FAILED),
    ]
    assert "address" in observer.events[-1].error


def test_failure_aborts_and_reports_step_name():
    observer = RecordingObserver()
    ran = []

    def boom(book):
        raise TransactionRejected("0xdead", "execution reverted", label="setMaxDeposit")

    steps = [
        WorkflowStep("first", produce(a=1)),
        WorkflowStep("configure_l1_bridge", boom),
        WorkflowStep("never", lambda book: ran.append("never")),
    ]

    with pytest.raises(StepFailed) as exc_info:
        StepSequencer("eth_bridge", observer, clock=lambda: 0.0).run(steps)

    err = exc_info.value
    assert err.step == "configure_l1_bridge"
    assert err.pipeline == "eth_bridge"
    assert isinstance(err.cause, TransactionRejected)
    assert "configure_l1_bridge" in str(err) and "0xdead" in str(err)
    assert ran == []

    failed = [e for e in observer.events if e.status is EventStatus.FAILED]
    assert [e.step for e in failed] == ["configure_l1_bridge"]
    assert "execution reverted" in failed[0].error


def test_observer_sees_started_and_completed_in_order():
    observer = RecordingObserver()
    StepSequencer("demo", observer).run([WorkflowStep("a", produce(x=1)), WorkflowStep("b", produce(y=2))])

    assert [(e.step, e.status) for e in observer.events] == [
        ("a", EventStatus.STARTED),
        ("a", EventStatus.COMPLETED),
        ("b", EventStatus.STARTED),
        ("b", EventStatus.COMPLETED),
    ]
    assert observer.events[1].entries == {"x": 1}


def test_phased_run_reaches_ready_and_reports_transitions():
    observer = RecordingObserver()
    StepSequencer("pair", observer).run(full_phase_run())

    phases = [e.phase for e in observer.events if e.status is EventStatus.PHASE]
    assert phases == list(BridgePhase)[1:]


def test_phase_cannot_be_skipped():
    observer = RecordingObserver()
    steps = full_phase_run()
    del steps[2]  # no L1_INITIALIZED step

    with pytest.raises(PhaseOrderError):
        StepSequencer("pair", observer).run(steps)

    failed = [e for e in observer.events if e.status is EventStatus.FAILED]
    assert [(e.step, e.phase) for e in failed] == [("init_l2", P.L2_INITIALIZED)]
    assert "init_l2" not in observer.step_names(EventStatus.STARTED)


def test_phase_cannot_rewind():
    steps = full_phase_run()
    steps.insert(3, WorkflowStep("late_deploy", produce(), phase=P.L2_CONTRACTS_DEPLOYED))

    with pytest.raises(PhaseOrderError):
        StepSequencer("pair").run(steps)


def test_phased_run_must_end_ready():
    with pytest.raises(PhaseOrderError, match="READY"):
        StepSequencer("pair").run(full_phase_run()[:-1])


def test_upgrade_phases_run_from_not_started_to_ready():
    U = UpgradePhase
    observer = RecordingObserver()
    steps = [
        WorkflowStep("deploy", produce(impl=0x1), phase=U.IMPLEMENTATION_DEPLOYED),
        WorkflowStep("add", produce(), requires=("impl",), phase=U.IMPLEMENTATION_ADDED),
        WorkflowStep("upgrade", produce(), requires=("impl",), phase=U.UPGRADED),
        WorkflowStep("finish", produce(), phase=U.READY),
    ]

    StepSequencer("upgrade", observer).run(steps)

    assert [e.phase for e in observer.events if e.status is EventStatus.PHASE] == list(UpgradePhase)[1:]


def test_phase_enums_cannot_be_mixed():
    steps = [
        WorkflowStep("deploy", produce(), phase=UpgradePhase.IMPLEMENTATION_DEPLOYED),
        WorkflowStep("other", produce(), phase=P.L2_CONTRACTS_DEPLOYED),
    ]

    with pytest.raises(PhaseOrderError, match="mixes"):
        StepSequencer("upgrade").run(steps)


def test_duplicate_step_names_rejected():
    with pytest.raises(ValueError):
        StepSequencer("demo").run([WorkflowStep("a", produce()), WorkflowStep("a", produce())])


def test_address_book_is_immutable():
    book = AddressBook({"a": 1})
    updated = book.with_entries({"b": 2})

    assert "b" not in book
    assert dict(updated) == {"a": 1, "b": 2}
    with pytest.raises(TypeError):
        book["c"] = 3


def test_address_book_collects_contract_addresses():
    book = AddressBook(
        {
            "l1": DeployedContractRef("0xABCDEF0000000000000000000000000000000001", Layer.L1),
            "l2": DeployedContractRef(0x1234, Layer.L2, 0x99),
            "class_hash": 0x99,
        }
    )
    assert book.addresses() == {"0xabcdef0000000000000000000000000000000001", "0x1234"}


def test_checkpoint_observer_writes_completed_entries(tmp_path):
    path = tmp_path / "addresses.json"
    observer = CompositeObserver(RecordingObserver(), CheckpointObserver(path))

    StepSequencer("pair", observer).run(full_phase_run())

    data = json.loads(path.read_text())
    assert data["l1"] == {"address": "0x" + "aa" * 20, "layer": "l1"}
    assert data["l2"] == {"address": "0xbb", "layer": "l2", "class_hash": "0xc"}


def test_logging_observer_formats_events(caplog):
    logger = logging.getLogger("bridge_bootstrapper.tests")
    with caplog.at_level(logging.INFO, logger="bridge_bootstrapper.tests"):
        StepSequencer("udc", LoggingObserver(logger), clock=lambda: 1.0).run(
            [WorkflowStep("declare_udc", produce(udc_class_hash=0x42))]
        )

    messages = [r.getMessage() for r in caplog.records]
    assert "STARTED | udc | declare_udc" in messages
    assert "COMPLETED | udc | declare_udc | udc_class_hash=66 | 0.00s" in messages


def test_failed_events_are_logged_as_errors(caplog):
    logger = logging.getLogger("bridge_bootstrapper.tests")
    with caplog.at_level(logging.INFO, logger="bridge_bootstrapper.tests"):
        log_step_event(logger, StepEvent("udc", "deploy_udc", EventStatus.FAILED, error="rejected"))

    assert caplog.records[-1].levelno == logging.ERROR
    assert caplog.records[-1].getMessage().endswith("| rejected")

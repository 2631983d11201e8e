"""Export state machine transitions."""

from __future__ import annotations

import threading

import pytest

from FormVox.DocumentExport.api.exceptions import IllegalTransition
from FormVox.DocumentExport.state import ExportState, ExportStateMachine


def test_single_page_lifecycle_publishes_snapshots():
    machine = ExportStateMachine()
    seen = []
    machine.subscribe(seen.append)

    assert machine.try_begin("Downloading PDF...")
    machine.downloading(1, 1, "Downloading PDF...")
    machine.finalizing("Saving to device...")
    machine.finish()

    assert [s.state for s in seen] == [
        ExportState.RESOLVING_PATHS,
        ExportState.DOWNLOADING,
        ExportState.FINALIZING,
        ExportState.IDLE,
    ]
    assert seen[2].progress == "Saving to device..."
    assert not machine.is_exporting
    assert machine.progress == ""


def test_try_begin_rejects_while_busy():
    machine = ExportStateMachine()
    assert machine.try_begin()
    assert not machine.try_begin()
    machine.finish()
    assert machine.try_begin()


def test_only_one_thread_wins_try_begin():
    machine = ExportStateMachine()
    barrier = threading.Barrier(8)
    wins = []

    def contender():
        barrier.wait()
        wins.append(machine.try_begin())

    threads = [threading.Thread(target=contender) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert wins.count(True) == 1


def test_next_page_requires_larger_index():
    machine = ExportStateMachine()
    machine.try_begin()
    machine.downloading(1, 3)
    machine.finalizing()
    machine.downloading(2, 3)
    machine.finalizing()

    with pytest.raises(IllegalTransition):
        machine.downloading(2, 3)
    assert machine.snapshot.page == 2
    assert machine.snapshot.total_pages == 3


@pytest.mark.parametrize(
    "steps",
    [
        ["downloading"],
        ["finalizing"],
        ["try_begin", "finalizing"],
        ["try_begin", "downloading", "downloading"],
    ],
)
def test_illegal_transitions(steps):
    machine = ExportStateMachine()
    *setup, last = steps
    for step in setup:
        getattr(machine, step)()
    with pytest.raises(IllegalTransition):
        getattr(machine, last)()


def test_progress_while_idle_is_rejected():
    with pytest.raises(IllegalTransition):
        ExportStateMachine().set_progress("nope")


def test_unsubscribe_and_failing_subscriber():
    machine = ExportStateMachine()
    seen = []

    def broken(snapshot):
        raise RuntimeError("ui gone")

    machine.subscribe(broken)
    unsubscribe = machine.subscribe(seen.append)
    machine.try_begin()
    unsubscribe()
    machine.finish()

    assert len(seen) == 1

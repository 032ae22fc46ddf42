# tests/assetbuild/assets/test_status_table.py
from __future__ import annotations

import pytest

from assetbuild.assets.status import BuildState, StatusTable
from assetbuild.core.errors import InvariantViolation


def test_absent_key_reads_pending_and_table_starts_complete():
    table = StatusTable("t")
    assert table.get("x") is BuildState.PENDING
    assert "x" not in table
    assert table.allComplete() is True


def test_forward_transitions_and_completion():
    table = StatusTable("t")
    table.transition("x", BuildState.STARTED)
    assert table.allComplete() is False
    assert table.pending() == ["x"]
    table.transition("x", BuildState.COMPLETE)
    assert table.allComplete() is True
    assert len(table) == 1


@pytest.mark.parametrize("steps", [
    [BuildState.COMPLETE],
    [BuildState.STARTED, BuildState.STARTED],
    [BuildState.STARTED, BuildState.COMPLETE, BuildState.COMPLETE],
    [BuildState.STARTED, BuildState.COMPLETE, BuildState.STARTED],
    [BuildState.PENDING],
])
def test_illegal_transitions_raise(steps):
    table = StatusTable("t")
    with pytest.raises(InvariantViolation):
        for step in steps:
            table.transition("x", step)


def test_listeners_see_each_transition():
    table = StatusTable("t")
    seen = []
    unsub = table.onTransition(lambda key, old, new: seen.append((key, old, new)))
    table.transition("x", BuildState.STARTED)
    table.transition("x", BuildState.COMPLETE)
    unsub()
    table.transition("y", BuildState.STARTED)
    assert seen == [
        ("x", BuildState.PENDING, BuildState.STARTED),
        ("x", BuildState.STARTED, BuildState.COMPLETE),
    ]

from __future__ import annotations

import pytest

from automation_engine.runtime import ExecutionContext, RunCancelled
from automation_engine.schemas.domain import StepStatus


def _context() -> ExecutionContext:
    return ExecutionContext(run_id="run-1", automation_id="auto-1", user_id="user-1", variables={"a": 1})


def test_log_appends_entries() -> None:
    context = _context()

    entry = context.log("s1", StepStatus.failed, "Step failed: s1", error="boom")

    assert context.logs == [entry]
    assert entry.error == "boom"
    assert entry.timestamp.tzinfo is not None


def test_progress_is_a_snapshot() -> None:
    context = _context()
    context.total_steps = 3
    context.current_step = 1
    context.log("s1", StepStatus.running, "Starting step: s1")

    snapshot = context.progress()
    context.variables["b"] = 2
    context.log("s1", StepStatus.completed, "Completed step: s1")

    assert snapshot.current_step == 1
    assert snapshot.total_steps == 3
    assert snapshot.variables == {"a": 1}
    assert len(snapshot.steps) == 1
    assert snapshot.started_at == context.started_at


def test_cancellation() -> None:
    context = _context()
    context.raise_if_cancelled()

    context.cancel()

    assert context.cancelled
    with pytest.raises(RunCancelled) as exc:
        context.raise_if_cancelled()
    assert exc.value.run_id == "run-1"

"""
Unit tests for the execution store: history bounds, updates and stats.
"""

from datetime import timedelta
import pytest
from services.orchestrator.engine.execution_store import ExecutionStore
from shared.types import ExecutionStatus, WorkflowExecution


def make_execution(execution_id, workflow_id="wf", status=ExecutionStatus.RUNNING, duration_ms=None):
    execution = WorkflowExecution(id=execution_id, workflow_id=workflow_id, status=status)
    if duration_ms is not None:
        execution.end_time = execution.start_time + timedelta(milliseconds=duration_ms)
    return execution


def test_history_is_most_recent_first():
    store = ExecutionStore(capacity=5)
    for i in range(3):
        store.store(make_execution(f"e{i}"))

    assert [e.id for e in store.list()] == ["e2", "e1", "e0"]
    assert [e.id for e in store.list(limit=1, offset=1)] == ["e1"]


def test_capacity_evicts_oldest_from_history_and_registry():
    store = ExecutionStore(capacity=2)
    for i in range(3):
        store.store(make_execution(f"e{i}"))

    assert len(store) == 2
    assert store.get("e0") is None
    assert store.get("e2") is not None


def test_capacity_from_environment(monkeypatch):
    monkeypatch.setenv("EXECUTION_HISTORY_SIZE", "7")

    assert ExecutionStore().capacity == 7


def test_invalid_capacity_rejected():
    with pytest.raises(ValueError):
        ExecutionStore(capacity=0)


def test_update_merges_fields():
    store = ExecutionStore()
    store.store(make_execution("e1"))

    updated = store.update("e1", status=ExecutionStatus.COMPLETED)

    assert updated.status == ExecutionStatus.COMPLETED
    assert store.get("e1").status == ExecutionStatus.COMPLETED


def test_update_unknown_id_is_noop():
    store = ExecutionStore()

    assert store.update("nope", status=ExecutionStatus.FAILED) is None
    assert len(store) == 0


def test_list_by_workflow_and_active():
    store = ExecutionStore()
    store.store(make_execution("a1", "a"))
    store.store(make_execution("b1", "b", ExecutionStatus.COMPLETED, 10))
    store.store(make_execution("a2", "a", ExecutionStatus.FAILED, 10))

    assert [e.id for e in store.list_by_workflow("a")] == ["a2", "a1"]
    assert [e.id for e in store.list_active()] == ["a1"]


def test_stats():
    store = ExecutionStore()
    store.store(make_execution("c1", status=ExecutionStatus.COMPLETED, duration_ms=100))
    store.store(make_execution("c2", status=ExecutionStatus.COMPLETED, duration_ms=300))
    store.store(make_execution("f1", status=ExecutionStatus.FAILED, duration_ms=5000))
    store.store(make_execution("r1"))

    stats = store.stats()

    assert stats.total == 4
    assert stats.completed == 2
    assert stats.failed == 1
    assert stats.running == 1
    assert stats.success_rate == 50.0
    assert stats.avg_duration_ms == 200


def test_stats_on_empty_store():
    stats = ExecutionStore().stats()

    assert stats.total == 0
    assert stats.success_rate == 0.0
    assert stats.avg_duration_ms == 0


def test_clear():
    store = ExecutionStore()
    store.store(make_execution("e1"))

    store.clear()

    assert len(store) == 0
    assert store.get("e1") is None

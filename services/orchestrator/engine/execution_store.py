"""In-process registry and bounded history of workflow executions."""

import logging
import os
import threading
from typing import Dict, List, Optional
from shared.constants import (
    DEFAULT_EXECUTION_HISTORY_SIZE,
    DEFAULT_EXECUTION_PAGE_SIZE,
    DEFAULT_WORKFLOW_EXECUTION_PAGE_SIZE,
)
from shared.types import ExecutionStats, ExecutionStatus, WorkflowExecution

logger = logging.getLogger(__name__)


class ExecutionStore:
    """
    Keeps executions by id plus a most-recent-first history of at most
    `capacity` entries. Evicting from the history also drops the record.

    One instance is created at start-up and shared by the engine and the
    monitoring API, so every mutation holds the lock.
    """

    def __init__(self, capacity: Optional[int] = None):
        if capacity is None:
            capacity = int(os.getenv("EXECUTION_HISTORY_SIZE", DEFAULT_EXECUTION_HISTORY_SIZE))
        if capacity < 1:
            raise ValueError("Execution store capacity must be at least 1")
        self.capacity = capacity
        self._executions: Dict[str, WorkflowExecution] = {}
        self._history: List[WorkflowExecution] = []
        self._lock = threading.RLock()

    def store(self, execution: WorkflowExecution) -> None:
        with self._lock:
            self._executions[execution.id] = execution
            self._history.insert(0, execution)

            while len(self._history) > self.capacity:
                evicted = self._history.pop()
                self._executions.pop(evicted.id, None)
                logger.debug("Evicted execution from history", extra={"execution_id": evicted.id})

        logger.info("Stored execution", extra={
            "execution_id": execution.id,
            "status": execution.status.value,
            "history_size": len(self._history)
        })

    def update(self, execution_id: str, **fields) -> Optional[WorkflowExecution]:
        """Shallow-merges fields into a stored execution"""
        with self._lock:
            execution = self._executions.get(execution_id)
            if execution is None:
                return None
            for name, value in fields.items():
                setattr(execution, name, value)
            return execution

    def get(self, execution_id: str) -> Optional[WorkflowExecution]:
        with self._lock:
            return self._executions.get(execution_id)

    def list(self, limit: int = DEFAULT_EXECUTION_PAGE_SIZE, offset: int = 0) -> List[WorkflowExecution]:
        with self._lock:
            return self._history[offset:offset + limit]

    def list_by_workflow(self, workflow_id: str, limit: int = DEFAULT_WORKFLOW_EXECUTION_PAGE_SIZE) -> List[WorkflowExecution]:
        with self._lock:
            return [e for e in self._history if e.workflow_id == workflow_id][:limit]

    def list_active(self) -> List[WorkflowExecution]:
        with self._lock:
            return [e for e in self._history if e.status == ExecutionStatus.RUNNING]

    def stats(self) -> ExecutionStats:
        with self._lock:
            history = list(self._history)

        counts = {status: 0 for status in ExecutionStatus}
        for execution in history:
            counts[execution.status] += 1

        total = len(history)
        completed = counts[ExecutionStatus.COMPLETED]
        durations = [
            e.duration_ms for e in history
            if e.status == ExecutionStatus.COMPLETED and e.duration_ms is not None
        ]

        return ExecutionStats(
            total=total,
            completed=completed,
            failed=counts[ExecutionStatus.FAILED],
            running=counts[ExecutionStatus.RUNNING],
            cancelled=counts[ExecutionStatus.CANCELLED],
            success_rate=round(completed / total * 100, 1) if total else 0.0,
            avg_duration_ms=round(sum(durations) / len(durations)) if durations else 0,
        )

    def clear(self) -> None:
        with self._lock:
            self._history.clear()
            self._executions.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)

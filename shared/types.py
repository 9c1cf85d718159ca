"""Shared types for the engine, executors, compiler and API."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Any, Optional
from pydantic import BaseModel, ConfigDict, Field
from shared.constants import DEFAULT_WORKFLOW_VERSION


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StepType(str, Enum):
    EXTERNAL_CALL = "external-call"
    LLM_COMPLETION = "llm-completion"
    TRANSFORM = "transform"
    PARALLEL_GROUP = "parallel-group"


class TriggerType(str, Enum):
    MANUAL = "manual"
    SCHEDULED = "scheduled"
    WEBHOOK = "webhook"


class ExecutionStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class StepStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class WorkflowStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    # Kept as a plain string so definitions with unknown types still load;
    # the engine rejects them at dispatch.
    type: str
    name: str = ""
    inputs: Dict[str, Any] = Field(default_factory=dict)
    outputs: List[str] = Field(default_factory=list)
    config: Dict[str, Any] = Field(default_factory=dict)
    dependencies: List[str] = Field(default_factory=list)


class WorkflowTrigger(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: TriggerType = TriggerType.MANUAL
    config: Dict[str, Any] = Field(default_factory=dict)


class Workflow(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    version: str = DEFAULT_WORKFLOW_VERSION
    description: str = ""
    steps: List[WorkflowStep] = Field(default_factory=list)
    triggers: List[WorkflowTrigger] = Field(default_factory=list)

    def get_step(self, step_id: str) -> Optional[WorkflowStep]:
        return next((step for step in self.steps if step.id == step_id), None)


@dataclass
class ExecutionContext:
    """Per-run state, grown as levels complete. Never shared across runs."""
    workflow_id: str
    execution_id: str
    inputs: Dict[str, Any] = field(default_factory=dict)
    step_results: Dict[str, Dict[str, Any]] = field(default_factory=dict)


class StepResult(BaseModel):
    step_id: str
    status: StepStatus
    outputs: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None
    execution_time_ms: float = 0.0

    @property
    def is_success(self) -> bool:
        return self.status == StepStatus.COMPLETED


class WorkflowErrorEntry(BaseModel):
    step_id: str
    message: str
    timestamp: datetime = Field(default_factory=utcnow)
    stack: Optional[str] = None


class WorkflowExecution(BaseModel):
    id: str
    workflow_id: str
    status: ExecutionStatus = ExecutionStatus.RUNNING
    start_time: datetime = Field(default_factory=utcnow)
    end_time: Optional[datetime] = None
    step_results: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    errors: List[WorkflowErrorEntry] = Field(default_factory=list)

    @property
    def duration_ms(self) -> Optional[int]:
        if self.end_time is None:
            return None
        return int((self.end_time - self.start_time).total_seconds() * 1000)


class StoredWorkflow(BaseModel):
    """Persistence envelope around a workflow definition"""
    id: str
    key: str
    name: str
    description: Optional[str] = None
    version: str = DEFAULT_WORKFLOW_VERSION
    definition: Workflow
    visual: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ExecutionStats(BaseModel):
    total: int
    completed: int
    failed: int
    running: int
    cancelled: int
    success_rate: float
    avg_duration_ms: int

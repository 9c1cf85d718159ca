"""API request/response models."""

from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from services.compiler.models import VisualNode
from shared.types import (
    ExecutionStats,
    ExecutionStatus,
    StoredWorkflow,
    Workflow,
    WorkflowErrorEntry,
    WorkflowExecution,
    WorkflowTrigger,
)


class WorkflowSummary(BaseModel):
    id: str
    key: str
    name: str
    description: Optional[str] = None
    version: str
    triggers: List[WorkflowTrigger]
    step_count: int

    @classmethod
    def from_stored(cls, stored: StoredWorkflow) -> "WorkflowSummary":
        return cls(
            id=stored.id,
            key=stored.key,
            name=stored.name,
            description=stored.description,
            version=stored.version,
            triggers=stored.definition.triggers,
            step_count=len(stored.definition.steps),
        )


class UpsertWorkflowRequest(BaseModel):
    """Workflow definition upload; key and name default to the definition's id and name"""
    key: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    definition: Workflow
    visual: Optional[Dict[str, Any]] = None


class CompileWorkflowRequest(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    nodes: List[VisualNode]
    save: bool = False


class CompileWorkflowResponse(BaseModel):
    workflow: Workflow
    stored: Optional[StoredWorkflow] = None


class TriggerWorkflowRequest(BaseModel):
    """Run-level inputs, e.g. credentials and query parameters"""
    inputs: Dict[str, Any] = Field(default_factory=dict)


class ExecutionResponse(BaseModel):
    id: str
    workflow_id: str
    status: ExecutionStatus
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_ms: Optional[int] = None
    step_results: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    errors: List[WorkflowErrorEntry] = Field(default_factory=list)

    @classmethod
    def from_execution(cls, execution: WorkflowExecution) -> "ExecutionResponse":
        return cls(duration_ms=execution.duration_ms, **execution.model_dump())


class ExecutionListResponse(BaseModel):
    executions: List[ExecutionResponse]
    total: int
    limit: int
    offset: int
    stats: ExecutionStats


class StatusResponse(BaseModel):
    status: str
    workflow_count: int
    step_types: List[str]
    stats: ExecutionStats

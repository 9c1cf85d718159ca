"""Structured exception hierarchy for the workflow engine."""

from typing import Optional, Dict, Any
from pydantic import BaseModel


class TaskError(BaseModel):
    """Structured description of a failed remote call"""
    error_type: str
    error_message: str
    http_status_code: Optional[int] = None
    context: Dict[str, Any] = {}


class WorkflowError(Exception):
    """Base exception for workflow errors"""

    def __init__(self, message: str, execution_id: str = "", **context):
        self.message = message
        self.execution_id = execution_id
        self.context = context
        super().__init__(message)


class DefinitionError(WorkflowError):
    pass


class WorkflowNotFoundError(DefinitionError):
    pass


class CyclicDependencyError(DefinitionError):

    def __init__(self, step_id: str, **context):
        self.step_id = step_id
        super().__init__(f"Circular dependency detected involving step: {step_id}", **context)


class DanglingDependencyError(DefinitionError):
    pass


class NoExecutorFoundError(DefinitionError):

    def __init__(self, step_type: str, **context):
        self.step_type = step_type
        super().__init__(f"No executor found for step type: {step_type}", **context)


class StepExecutionError(WorkflowError):

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None, **context):
        self.status_code = status_code
        self.body = body
        super().__init__(message, **context)

    @classmethod
    def from_task_error(cls, error: TaskError, body: Optional[str] = None) -> "StepExecutionError":
        return cls(error.error_message, status_code=error.http_status_code, body=body, **error.context)


class CompilationError(WorkflowError):
    pass


class ValidationError(WorkflowError):
    pass

"""Executor contract shared by every step type."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional
from pydantic import BaseModel
from services.worker.handlers.schemas import validate_step_config
from shared.constants import DEFAULT_EXTERNAL_API_TIMEOUT_SECONDS
from shared.types import ExecutionContext, StepResult, StepType, WorkflowStep

StepRunner = Callable[[WorkflowStep, ExecutionContext], Awaitable[StepResult]]


@dataclass
class ExecutorServices:
    """Collaborators handed to every executor the engine builds"""
    run_step: Optional[StepRunner] = None
    completion_provider: Any = None
    prompt_store: Any = None
    http_session: Any = None
    http_timeout: float = DEFAULT_EXTERNAL_API_TIMEOUT_SECONDS


class StepExecutor(ABC):
    step_type: StepType

    def __init__(self, services: Optional[ExecutorServices] = None):
        self.services = services or ExecutorServices()
        self.logger = logging.getLogger(type(self).__module__)

    @abstractmethod
    async def execute(
        self,
        step: WorkflowStep,
        inputs: Dict[str, Any],
        context: ExecutionContext
    ) -> Dict[str, Any]:
        """Runs one step and returns its outputs. Raises on failure."""

    def parse_config(self, step: WorkflowStep) -> BaseModel:
        return validate_step_config(self.step_type.value, step.config)

    def log_step(self, step: WorkflowStep, context: ExecutionContext, message: str) -> None:
        self.logger.info(message, extra={
            "execution_id": context.execution_id,
            "step_id": step.id,
            "step_type": step.type
        })

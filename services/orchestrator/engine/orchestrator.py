"""Workflow engine: level-by-level execution of a workflow's steps."""

import asyncio
import os
import time
import traceback
import logging
from typing import Dict, List, Any, Optional
from services.orchestrator.engine.execution_store import ExecutionStore
from services.orchestrator.engine.graph import DependencyGraph, build_dependency_graph
from services.orchestrator.engine.references import resolve_value
from services.worker.handlers import external, llm, parallel, transform  # noqa: F401  (registers executors)
from services.worker.handlers.base import ExecutorServices, StepExecutor
from services.worker.handlers.registry import parse_step_type, registered_executors
from shared.constants import DEFAULT_EXTERNAL_API_TIMEOUT_SECONDS, WORKFLOW_ERROR_STEP_ID
from shared.exceptions import NoExecutorFoundError, WorkflowNotFoundError, DefinitionError
from shared.logging_config import reset_correlation_id, set_correlation_id
from shared.types import (
    ExecutionContext,
    ExecutionStatus,
    StepResult,
    StepStatus,
    StepType,
    Workflow,
    WorkflowErrorEntry,
    WorkflowExecution,
    WorkflowStep,
    utcnow,
)
from shared.utils import generate_execution_id

logger = logging.getLogger(__name__)


class WorkflowEngine:
    """
    Runs workflows in a single process. Steps are grouped into levels by
    dependency depth; each level is dispatched concurrently and fully awaited
    before the next starts. The first failing level ends the run and none of
    its outputs are kept.
    """

    def __init__(
        self,
        repository,
        execution_store: ExecutionStore,
        executors: Optional[Dict[StepType, StepExecutor]] = None,
        completion_provider=None,
        prompt_store=None,
        http_session=None
    ):
        self.repository = repository
        self.execution_store = execution_store

        if executors is None:
            services = ExecutorServices(
                run_step=self.execute_step,
                completion_provider=completion_provider,
                prompt_store=prompt_store,
                http_session=http_session,
                http_timeout=float(os.getenv("EXTERNAL_API_TIMEOUT_SECONDS", DEFAULT_EXTERNAL_API_TIMEOUT_SECONDS)),
            )
            executors = {step_type: cls(services) for step_type, cls in registered_executors().items()}
        self.executors = executors

    def available_step_types(self) -> List[str]:
        return [step_type.value for step_type in self.executors]

    async def execute_workflow(self, workflow_id: str, inputs: Optional[Dict[str, Any]] = None) -> WorkflowExecution:
        execution = WorkflowExecution(id=generate_execution_id(), workflow_id=workflow_id)
        self.execution_store.store(execution)

        token = set_correlation_id(execution.id)
        try:
            return await self._run(execution, workflow_id, inputs)
        finally:
            reset_correlation_id(token)

    async def _run(
        self,
        execution: WorkflowExecution,
        workflow_id: str,
        inputs: Optional[Dict[str, Any]]
    ) -> WorkflowExecution:
        logger.info("Starting workflow execution", extra={
            "execution_id": execution.id,
            "workflow_id": workflow_id
        })

        try:
            workflow = self._load_workflow(workflow_id)
            graph = build_dependency_graph(workflow)
            for step in workflow.steps:
                self._get_executor(step.type)
        except DefinitionError as e:
            return self._fail(execution, WORKFLOW_ERROR_STEP_ID, e.message)
        except Exception as e:
            logger.exception("Workflow definition could not be loaded", extra={
                "execution_id": execution.id,
                "workflow_id": workflow_id
            })
            return self._fail(execution, WORKFLOW_ERROR_STEP_ID, str(e) or type(e).__name__, traceback.format_exc())

        context = ExecutionContext(
            workflow_id=workflow.id,
            execution_id=execution.id,
            inputs=dict(inputs or {})
        )

        for level in range(graph.max_level + 1):
            failed = await self._run_level(workflow, graph, level, context)
            if failed is not None:
                return self._fail(execution, failed.step_id, failed.error or "Step failed")

        self._record(
            execution,
            status=ExecutionStatus.COMPLETED,
            end_time=utcnow(),
            step_results=dict(context.step_results)
        )

        logger.info("Workflow execution completed", extra={
            "execution_id": execution.id,
            "workflow_id": workflow_id,
            "duration_ms": execution.duration_ms
        })
        return execution

    async def _run_level(
        self,
        workflow: Workflow,
        graph: DependencyGraph,
        level: int,
        context: ExecutionContext
    ) -> Optional[StepResult]:
        """Runs one level; returns the first failed result in declaration order, if any"""
        steps = graph.steps_at_level(workflow, level)
        logger.debug("Dispatching level", extra={
            "execution_id": context.execution_id,
            "level": level,
            "step_ids": [step.id for step in steps]
        })

        results = await asyncio.gather(*(self.execute_step(step, context) for step in steps))

        failed = next((result for result in results if not result.is_success), None)
        if failed is not None:
            return failed

        for result in results:
            context.step_results[result.step_id] = result.outputs
        return None

    async def execute_step(self, step: WorkflowStep, context: ExecutionContext) -> StepResult:
        start = time.perf_counter()
        try:
            executor = self._get_executor(step.type)
            inputs = self.resolve_inputs(step, context)
            outputs = await executor.execute(step, inputs, context)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start) * 1000
            message = getattr(e, "message", None) or str(e) or type(e).__name__
            logger.warning("Step failed", extra={
                "execution_id": context.execution_id,
                "step_id": step.id,
                "step_type": step.type,
                "error": message,
                "elapsed_ms": round(elapsed_ms, 2)
            })
            return StepResult(
                step_id=step.id,
                status=StepStatus.FAILED,
                error=message,
                execution_time_ms=elapsed_ms
            )

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("Step completed", extra={
            "execution_id": context.execution_id,
            "step_id": step.id,
            "step_type": step.type,
            "elapsed_ms": round(elapsed_ms, 2)
        })
        return StepResult(
            step_id=step.id,
            status=StepStatus.COMPLETED,
            outputs=outputs or {},
            execution_time_ms=elapsed_ms
        )

    def resolve_inputs(self, step: WorkflowStep, context: ExecutionContext) -> Dict[str, Any]:
        return {name: resolve_value(value, context) for name, value in step.inputs.items()}

    def _load_workflow(self, workflow_id: str) -> Workflow:
        stored = self.repository.get(workflow_id)
        if stored is None:
            raise WorkflowNotFoundError(f"Workflow not found: {workflow_id}")
        return stored.definition

    def _get_executor(self, step_type: str) -> StepExecutor:
        executor = self.executors.get(parse_step_type(step_type))
        if executor is None:
            raise NoExecutorFoundError(step_type)
        return executor

    def _fail(
        self,
        execution: WorkflowExecution,
        step_id: str,
        message: str,
        stack: Optional[str] = None
    ) -> WorkflowExecution:
        error = WorkflowErrorEntry(step_id=step_id, message=message, stack=stack)
        self._record(
            execution,
            status=ExecutionStatus.FAILED,
            end_time=utcnow(),
            errors=execution.errors + [error]
        )

        logger.error("Workflow execution failed", extra={
            "execution_id": execution.id,
            "workflow_id": execution.workflow_id,
            "step_id": step_id,
            "error": message
        })
        return execution

    def _record(self, execution: WorkflowExecution, **fields) -> None:
        # The record may already have been evicted from a small history
        if self.execution_store.update(execution.id, **fields) is None:
            for name, value in fields.items():
                setattr(execution, name, value)

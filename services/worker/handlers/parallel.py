"""Parallel-group executor."""

import asyncio
from typing import Dict, Any
from services.worker.handlers.base import StepExecutor
from services.worker.handlers.registry import register_executor
from shared.exceptions import StepExecutionError
from shared.types import ExecutionContext, StepType, WorkflowStep


@register_executor(StepType.PARALLEL_GROUP)
class ParallelGroupExecutor(StepExecutor):
    """
    Runs `config.steps` concurrently through the engine's single-step path.
    Each sub-step sees the group's resolved inputs overlaid with its own.
    Outputs are merged in declaration order, later sub-steps winning.
    """

    async def execute(
        self,
        step: WorkflowStep,
        inputs: Dict[str, Any],
        context: ExecutionContext
    ) -> Dict[str, Any]:
        config = self.parse_config(step)
        if not config.steps:
            raise StepExecutionError("Parallel group requires at least one sub-step")
        if self.services.run_step is None:
            raise StepExecutionError("Parallel group has no step runner")

        self.log_step(step, context, f"Executing {len(config.steps)} sub-steps in parallel")

        sub_steps = [
            sub_step.model_copy(update={"inputs": {**inputs, **sub_step.inputs}})
            for sub_step in config.steps
        ]
        results = await asyncio.gather(*(self.services.run_step(sub_step, context) for sub_step in sub_steps))

        failures = [f"{result.step_id}: {result.error}" for result in results if not result.is_success]
        if failures:
            raise StepExecutionError(f"Parallel step failures: {', '.join(failures)}")

        merged: Dict[str, Any] = {}
        for result in results:
            collisions = merged.keys() & result.outputs.keys()
            if collisions:
                self.logger.debug("Parallel output keys overwritten", extra={
                    "step_id": step.id,
                    "sub_step_id": result.step_id,
                    "keys": sorted(collisions)
                })
            merged.update(result.outputs)
        return merged

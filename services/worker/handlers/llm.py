"""LLM completion executor."""

import asyncio
from typing import Dict, Any, List, Optional
from services.orchestrator.engine.references import substitute_variables
from services.worker.handlers.base import StepExecutor
from services.worker.handlers.registry import register_executor
from shared.constants import DEFAULT_OUTPUT_NAME
from shared.exceptions import StepExecutionError
from shared.types import ExecutionContext, StepType, WorkflowStep

MESSAGE_INPUTS = ("prompt", "system")


@register_executor(StepType.LLM_COMPLETION)
class LlmCompletionExecutor(StepExecutor):
    """
    Sends a chat completion built from the step's prompt and optional system
    message. Either may come from the resolved inputs, the config, or the
    prompt store (by `prompt_key` / `system_key`). `{{name}}` placeholders are
    filled from the remaining resolved inputs.
    """

    async def execute(
        self,
        step: WorkflowStep,
        inputs: Dict[str, Any],
        context: ExecutionContext
    ) -> Dict[str, Any]:
        config = self.parse_config(step)
        variables = {k: v for k, v in inputs.items() if k not in MESSAGE_INPUTS}

        prompt = await self._pick_text(inputs.get("prompt"), config.prompt, config.prompt_key)
        if not prompt:
            raise StepExecutionError("Prompt is required for completion calls")
        system = await self._pick_text(inputs.get("system"), config.system, config.system_key)

        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": substitute_variables(system, variables)})
        messages.append({"role": "user", "content": substitute_variables(prompt, variables)})

        provider = self.services.completion_provider
        if provider is None:
            raise StepExecutionError("No completion provider configured")

        self.log_step(step, context, f"Requesting completion from {config.model}")
        text = await provider.create_completion(
            model=config.model,
            messages=messages,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )

        if not text or not text.strip():
            raise StepExecutionError("No content received from completion provider")

        output_name = step.outputs[0] if step.outputs else DEFAULT_OUTPUT_NAME
        return {output_name: text.strip()}

    async def _pick_text(self, from_inputs: Any, from_config: Optional[str], key: Optional[str]) -> str:
        for candidate in (from_inputs, from_config):
            if isinstance(candidate, str) and candidate.strip():
                return candidate
        if key and self.services.prompt_store is not None:
            # Store lookups may hit Redis
            return await asyncio.to_thread(self.services.prompt_store.get, key)
        return ""

"""
Transform executor.

The script is a single Jinja2 expression evaluated in the immutable sandbox,
so it can read its inputs and call the helpers below but cannot mutate them
or reach attributes the sandbox considers unsafe. Besides its resolved
inputs the script sees `steps` (outputs of completed steps) and
`workflow_inputs`; an input may not use either name.
"""

import statistics
from collections.abc import Mapping
from typing import Dict, Any, Iterable, List
from jinja2 import StrictUndefined, TemplateError
from jinja2.sandbox import ImmutableSandboxedEnvironment
from services.worker.handlers.base import StepExecutor
from services.worker.handlers.registry import register_executor
from shared.exceptions import StepExecutionError
from shared.types import ExecutionContext, StepType, WorkflowStep


def format_number(value: Any) -> str:
    """1234 -> 1.2K, 3400000 -> 3.4M"""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return str(value)

    for threshold, suffix in ((1_000_000_000, "B"), (1_000_000, "M"), (1_000, "K")):
        if abs(number) >= threshold:
            compact = f"{number / threshold:.1f}".rstrip("0").rstrip(".")
            return f"{compact}{suffix}"
    return str(int(number)) if number.is_integer() else str(number)


def _field(item: Any, key: str) -> Any:
    return item.get(key) if isinstance(item, Mapping) else getattr(item, key, None)


def sort_by(items: Iterable[Any], key: str, reverse: bool = False) -> List[Any]:
    # None sorts first ascending, last descending
    return sorted(items or [], key=lambda item: (_field(item, key) is not None, _field(item, key)), reverse=reverse)


def group_by(items: Iterable[Any], key: str) -> Dict[str, List[Any]]:
    groups: Dict[str, List[Any]] = {}
    for item in items or []:
        groups.setdefault(str(_field(item, key)), []).append(item)
    return groups


def _numbers(values: Iterable[Any]) -> List[float]:
    return [float(v) for v in values or [] if isinstance(v, (int, float)) and not isinstance(v, bool)]


def total(values: Iterable[Any]) -> float:
    return sum(_numbers(values))


def average(values: Iterable[Any]) -> float:
    numbers = _numbers(values)
    return sum(numbers) / len(numbers) if numbers else 0


def median(values: Iterable[Any]) -> float:
    numbers = _numbers(values)
    return statistics.median(numbers) if numbers else 0


SCRIPT_HELPERS = {
    "format_number": format_number,
    "sort_by": sort_by,
    "group_by": group_by,
    "sum": total,
    "average": average,
    "median": median,
}

RESERVED_SCRIPT_NAMES = ("steps", "workflow_inputs")

_environment = ImmutableSandboxedEnvironment(undefined=StrictUndefined)
_environment.globals.update(SCRIPT_HELPERS)


@register_executor(StepType.TRANSFORM)
class TransformExecutor(StepExecutor):

    async def execute(
        self,
        step: WorkflowStep,
        inputs: Dict[str, Any],
        context: ExecutionContext
    ) -> Dict[str, Any]:
        config = self.parse_config(step)
        if not config.script.strip():
            raise StepExecutionError("Transform script is required")

        self.log_step(step, context, "Executing transform script")

        shadowed = sorted(name for name in inputs if name in RESERVED_SCRIPT_NAMES)
        if shadowed:
            raise StepExecutionError(f"Transform inputs use reserved names: {', '.join(shadowed)}")

        scope = dict(inputs)
        scope["steps"] = context.step_results
        scope["workflow_inputs"] = context.inputs

        try:
            expression = _environment.compile_expression(config.script, undefined_to_none=False)
            result = expression(**scope)
        except TemplateError as e:
            raise StepExecutionError(f"Transform execution failed: {e.message or e}") from e
        except Exception as e:
            raise StepExecutionError(f"Transform execution failed: {str(e)}") from e

        if not isinstance(result, Mapping):
            raise StepExecutionError(
                f"Transform execution failed: script must produce a mapping, got {type(result).__name__}"
            )
        return dict(result)

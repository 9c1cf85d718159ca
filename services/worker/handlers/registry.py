"""Step executor registry keyed by step type."""

from typing import Dict, Type
from shared.exceptions import NoExecutorFoundError
from shared.types import StepType

_executor_registry: Dict[StepType, Type] = {}


def register_executor(step_type: StepType):
    def decorator(cls: Type):
        cls.step_type = step_type
        _executor_registry[step_type] = cls
        return cls
    return decorator


def parse_step_type(step_type: str) -> StepType:
    try:
        return StepType(step_type)
    except ValueError:
        raise NoExecutorFoundError(str(step_type))


def registered_executors() -> Dict[StepType, Type]:
    return dict(_executor_registry)


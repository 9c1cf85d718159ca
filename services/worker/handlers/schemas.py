"""Pydantic schemas for step configuration validation."""

from typing import Dict, Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from shared.constants import DEFAULT_LLM_MAX_TOKENS, DEFAULT_LLM_MODEL, DEFAULT_LLM_TEMPERATURE
from shared.exceptions import StepExecutionError
from shared.types import WorkflowStep


class ExternalCallConfig(BaseModel):
    """Config schema for external-call steps"""
    model_config = ConfigDict(extra="forbid")

    endpoint: str = Field(min_length=1)
    params: Dict[str, Any] = Field(default_factory=dict)


class LlmCompletionConfig(BaseModel):
    """Config schema for llm-completion steps"""
    model_config = ConfigDict(extra="forbid", protected_namespaces=())

    model: str = DEFAULT_LLM_MODEL
    prompt: Optional[str] = None
    prompt_key: Optional[str] = None
    system: Optional[str] = None
    system_key: Optional[str] = None
    max_tokens: int = Field(default=DEFAULT_LLM_MAX_TOKENS, ge=1)
    temperature: float = Field(default=DEFAULT_LLM_TEMPERATURE, ge=0, le=2)


class TransformConfig(BaseModel):
    """Config schema for transform steps"""
    model_config = ConfigDict(extra="forbid")

    script: str = ""


class ParallelGroupConfig(BaseModel):
    """Config schema for parallel-group steps"""
    model_config = ConfigDict(extra="forbid")

    steps: List[WorkflowStep] = Field(default_factory=list)


# Step type schema registry
STEP_CONFIG_SCHEMAS = {
    "external-call": ExternalCallConfig,
    "llm-completion": LlmCompletionConfig,
    "transform": TransformConfig,
    "parallel-group": ParallelGroupConfig,
}


def validate_step_config(step_type: str, config: Dict[str, Any]) -> BaseModel:
    """Validates step config against its Pydantic schema"""
    if step_type not in STEP_CONFIG_SCHEMAS:
        raise StepExecutionError(f"Unknown step type: {step_type}")

    schema = STEP_CONFIG_SCHEMAS[step_type]

    try:
        return schema(**config)
    except Exception as e:
        raise StepExecutionError(f"Invalid configuration for step type '{step_type}': {str(e)}")

"""Workflow definition validation for uploads."""

import json
from typing import Dict, Set
from services.orchestrator.engine.graph import DependencyGraph, build_dependency_graph
from services.orchestrator.engine.references import STEPS_SCOPE, iter_references
from services.worker.handlers.schemas import STEP_CONFIG_SCHEMAS, validate_step_config
from services.worker.handlers.transform import RESERVED_SCRIPT_NAMES
from shared.constants import MAX_CONFIG_SIZE_BYTES, MAX_STEPS_PER_WORKFLOW
from shared.exceptions import DefinitionError, StepExecutionError, ValidationError
from shared.types import StepType, Workflow, WorkflowStep


def validate_workflow(workflow: Workflow) -> None:
    """Raises ValidationError describing the first problem found"""
    if not workflow.steps:
        raise ValidationError("Workflow must contain at least one step")

    if len(workflow.steps) > MAX_STEPS_PER_WORKFLOW:
        raise ValidationError(
            f"Workflow exceeds maximum step limit: {len(workflow.steps)} > {MAX_STEPS_PER_WORKFLOW}"
        )

    step_ids: Set[str] = set()
    for step in workflow.steps:
        if step.id in step_ids:
            raise ValidationError(f"Duplicate step ID: {step.id}")
        step_ids.add(step.id)
        validate_step(step)

    try:
        graph = build_dependency_graph(workflow)
    except DefinitionError as e:
        raise ValidationError(e.message)

    ancestors = _ancestors(graph)
    for step in workflow.steps:
        for value in step.inputs.values():
            for reference in iter_references(value):
                if reference.scope != STEPS_SCOPE:
                    continue
                if reference.head not in ancestors[step.id]:
                    raise ValidationError(
                        f"Step '{step.id}' references '{reference.raw}' but does not depend on '{reference.head}'"
                    )


def validate_step(step: WorkflowStep) -> None:
    if step.type not in STEP_CONFIG_SCHEMAS:
        raise ValidationError(
            f"Step '{step.id}' has invalid type: '{step.type}'. "
            f"Allowed types: {', '.join(sorted(STEP_CONFIG_SCHEMAS))}"
        )

    config_size = len(json.dumps(step.config, default=str).encode('utf-8'))
    if config_size > MAX_CONFIG_SIZE_BYTES:
        raise ValidationError(
            f"Step '{step.id}' config exceeds size limit: {config_size} > {MAX_CONFIG_SIZE_BYTES} bytes"
        )

    try:
        config = validate_step_config(step.type, step.config)
    except StepExecutionError as e:
        raise ValidationError(f"Step '{step.id}': {e.message}")

    if step.type == StepType.TRANSFORM.value:
        shadowed = sorted(name for name in step.inputs if name in RESERVED_SCRIPT_NAMES)
        if shadowed:
            raise ValidationError(f"Step '{step.id}' uses reserved input names: {', '.join(shadowed)}")

    if step.type == StepType.PARALLEL_GROUP.value:
        for sub_step in config.steps:
            validate_step(sub_step)


def _ancestors(graph: DependencyGraph) -> Dict[str, Set[str]]:
    result: Dict[str, Set[str]] = {}
    for step_id in sorted(graph.nodes, key=lambda node: graph.levels[node]):
        found: Set[str] = set()
        for dep_id in graph.edges[step_id]:
            found.add(dep_id)
            found |= result[dep_id]
        result[step_id] = found
    return result

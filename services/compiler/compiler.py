"""Compiles a visual node graph into an executable workflow definition."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Any, Optional
from services.compiler import catalog
from services.compiler.models import ApiEndpoint, VisualNode
from shared.constants import (
    CREDENTIAL_SUFFIXES,
    DEFAULT_LLM_MAX_TOKENS,
    DEFAULT_LLM_MODEL,
    DEFAULT_LLM_TEMPERATURE,
    DEFAULT_OUTPUT_NAME,
    DEFAULT_WORKFLOW_VERSION,
    PREFERRED_WIRING_INPUTS,
    RUN_INPUT_NAMES,
)
from shared.exceptions import CompilationError
from shared.types import StepType, TriggerType, Workflow, WorkflowStep, WorkflowTrigger
from shared.utils import slugify

logger = logging.getLogger(__name__)

UNVISITED, IN_PROGRESS, DONE = 0, 1, 2


def is_credential_input(name: str) -> bool:
    return name in RUN_INPUT_NAMES or name.endswith(CREDENTIAL_SUFFIXES)


def pass_through_script(output_name: str, source: Optional[str]) -> str:
    value = source if source and source.isidentifier() else "none"
    return f'{{"{output_name}": {value}}}'


@dataclass
class CompilerOptions:
    validate_connections: bool = True


class WorkflowCompiler:
    """
    Turns visual nodes into a workflow. A connection source -> target makes
    the target depend on the source; steps are emitted dependencies first,
    and each upstream output is wired into a free input of its consumer.
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def compile(self, nodes: List[VisualNode], name: str, description: Optional[str] = None) -> Workflow:
        if not nodes:
            raise CompilationError("Cannot compile empty workflow")

        nodes_by_id = {node.id: node for node in nodes}
        if len(nodes_by_id) != len(nodes):
            raise CompilationError("Duplicate node ids in visual workflow")

        dependency_map = self.build_dependency_map(nodes)
        if self.options.validate_connections:
            self._validate(nodes, dependency_map)

        endpoints = {node.id: self._resolve_endpoint(node) for node in nodes}

        steps = [
            self._compile_node(node, dependency_map[node.id], endpoints)
            for node in self._topological_order(nodes, dependency_map)
        ]

        workflow = Workflow(
            id=slugify(name),
            name=name,
            version=DEFAULT_WORKFLOW_VERSION,
            description=description or f"Visual workflow with {len(nodes)} steps",
            steps=steps,
            triggers=[WorkflowTrigger(type=TriggerType.MANUAL)],
        )

        logger.info("Compiled visual workflow", extra={"workflow_id": workflow.id, "step_count": len(steps)})
        return workflow

    def build_dependency_map(self, nodes: List[VisualNode]) -> Dict[str, List[str]]:
        dependency_map: Dict[str, List[str]] = {node.id: [] for node in nodes}
        for node in nodes:
            for target_id in node.connections:
                if target_id not in dependency_map:
                    raise CompilationError(f"Node '{node.id}' connects to unknown node '{target_id}'")
                if node.id not in dependency_map[target_id]:
                    dependency_map[target_id].append(node.id)
        return dependency_map

    def _validate(self, nodes: List[VisualNode], dependency_map: Dict[str, List[str]]) -> None:
        self._detect_cycles(nodes, dependency_map)

        if len(nodes) > 1:
            orphans = [node.id for node in nodes if not dependency_map[node.id] and not node.connections]
            if orphans:
                logger.warning("Found orphaned nodes", extra={"node_ids": orphans})

    def _detect_cycles(self, nodes: List[VisualNode], dependency_map: Dict[str, List[str]]) -> None:
        marks = {node.id: UNVISITED for node in nodes}

        for node in nodes:
            if marks[node.id] != UNVISITED:
                continue
            marks[node.id] = IN_PROGRESS
            stack = [(node.id, iter(dependency_map[node.id]))]
            while stack:
                node_id, pending = stack[-1]
                dep_id = next(pending, None)
                if dep_id is None:
                    stack.pop()
                    marks[node_id] = DONE
                elif marks[dep_id] == IN_PROGRESS:
                    raise CompilationError(f"Circular dependency detected involving nodes: {node_id} -> {dep_id}")
                elif marks[dep_id] == UNVISITED:
                    marks[dep_id] = IN_PROGRESS
                    stack.append((dep_id, iter(dependency_map[dep_id])))

    def _topological_order(self, nodes: List[VisualNode], dependency_map: Dict[str, List[str]]) -> List[VisualNode]:
        nodes_by_id = {node.id: node for node in nodes}
        ordered: List[VisualNode] = []
        marks = {node.id: UNVISITED for node in nodes}

        for node in nodes:
            if marks[node.id] == DONE:
                continue
            marks[node.id] = IN_PROGRESS
            stack = [(node.id, iter(dependency_map[node.id]))]
            while stack:
                node_id, pending = stack[-1]
                dep_id = next(pending, None)
                if dep_id is None:
                    stack.pop()
                    marks[node_id] = DONE
                    ordered.append(nodes_by_id[node_id])
                elif marks[dep_id] == IN_PROGRESS:
                    raise CompilationError(f"Circular dependency detected at node: {dep_id}")
                elif marks[dep_id] == UNVISITED:
                    marks[dep_id] = IN_PROGRESS
                    stack.append((dep_id, iter(dependency_map[dep_id])))
        return ordered

    def _resolve_endpoint(self, node: VisualNode) -> Optional[ApiEndpoint]:
        if not node.endpoint:
            return None
        endpoint = catalog.get_endpoint(node.endpoint)
        if endpoint is None:
            raise CompilationError(f"Unknown endpoint: {node.endpoint}")
        return endpoint

    def _compile_node(
        self,
        node: VisualNode,
        dependencies: List[str],
        endpoints: Dict[str, Optional[ApiEndpoint]]
    ) -> WorkflowStep:
        endpoint = endpoints[node.id]
        inputs, wired = self._wire_inputs(node, endpoint, dependencies, endpoints)
        outputs = endpoint.output_names if endpoint and endpoint.outputs else [DEFAULT_OUTPUT_NAME]
        step_type, config = self._step_config(node, endpoint, outputs[0], wired)

        return WorkflowStep(
            id=node.id,
            type=step_type.value,
            name=endpoint.name if endpoint else f"Step {node.id[-4:]}",
            inputs=inputs,
            outputs=outputs,
            config=config,
            dependencies=list(dependencies),
        )

    def _step_config(self, node: VisualNode, endpoint: Optional[ApiEndpoint], output: str, wired: List[str]):
        source = wired[0] if wired else next(iter(node.inputs), None)

        if endpoint is None:
            return StepType.TRANSFORM, {"script": pass_through_script(output, source)}

        if endpoint.category == catalog.YOUTUBE:
            return StepType.EXTERNAL_CALL, {
                "endpoint": catalog.YOUTUBE_ENDPOINT_MAP.get(endpoint.id, endpoint.id),
                "params": dict(node.config),
            }

        if endpoint.category == catalog.OPENAI:
            config = {
                "model": node.config.get("model") or DEFAULT_LLM_MODEL,
                "prompt": node.config.get("prompt"),
                "system": node.config.get("system"),
                "system_key": node.config.get("system_key"),
                "prompt_key": node.config.get("prompt_key"),
                "max_tokens": node.config.get("max_tokens") or DEFAULT_LLM_MAX_TOKENS,
                "temperature": _first_set(node.config.get("temperature"), DEFAULT_LLM_TEMPERATURE),
            }
            return StepType.LLM_COMPLETION, {k: v for k, v in config.items() if v is not None}

        if endpoint.id == "transform-data":
            script = node.config.get("script") or pass_through_script(output, source or "data")
            return StepType.TRANSFORM, {"script": script}

        # database and http-request nodes compile to pass-through transforms
        return StepType.TRANSFORM, {"script": pass_through_script(output, source)}

    def _wire_inputs(
        self,
        node: VisualNode,
        endpoint: Optional[ApiEndpoint],
        dependencies: List[str],
        endpoints: Dict[str, Optional[ApiEndpoint]]
    ):
        inputs: Dict[str, Any] = dict(node.inputs)
        declared = endpoint.input_names if endpoint else []
        wired: List[str] = []

        for dep_id in dependencies:
            upstream = endpoints.get(dep_id)
            upstream_output = upstream.output_names[0] if upstream and upstream.outputs else DEFAULT_OUTPUT_NAME
            slot = self._pick_slot(declared, inputs)
            if slot is None:
                logger.debug("No free input for dependency", extra={"node_id": node.id, "dependency": dep_id})
                continue
            inputs[slot] = f"$steps.{dep_id}.{upstream_output}"
            wired.append(slot)

        if endpoint is not None:
            for param in endpoint.inputs:
                if param.name in inputs:
                    continue
                if is_credential_input(param.name):
                    inputs[param.name] = f"$input.{param.name}"
                elif param.default is not None:
                    inputs[param.name] = param.default

            missing = [p.name for p in endpoint.inputs if p.required and inputs.get(p.name) in (None, "")]
            if missing:
                logger.warning("Node missing required inputs", extra={"node_id": node.id, "missing": missing})

        return inputs, wired

    @staticmethod
    def _pick_slot(declared: List[str], inputs: Dict[str, Any]) -> Optional[str]:
        for name in PREFERRED_WIRING_INPUTS:
            if name in declared and name not in inputs:
                return name
        for name in declared:
            if name not in inputs and not is_credential_input(name):
                return name
        if not declared and "data" not in inputs:
            return "data"
        return None


def _first_set(value: Any, default: Any) -> Any:
    return default if value is None else value

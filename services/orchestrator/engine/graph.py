"""Dependency graph and level computation for workflow steps."""

from dataclasses import dataclass, field
from typing import Dict, List
from shared.exceptions import CyclicDependencyError, DanglingDependencyError
from shared.types import Workflow, WorkflowStep

UNVISITED, IN_PROGRESS, DONE = 0, 1, 2


@dataclass
class DependencyGraph:
    nodes: List[str]
    edges: Dict[str, List[str]]
    levels: Dict[str, int] = field(default_factory=dict)

    @property
    def max_level(self) -> int:
        return max(self.levels.values(), default=-1)

    def steps_at_level(self, workflow: Workflow, level: int) -> List[WorkflowStep]:
        """Steps at a level, in declaration order"""
        return [step for step in workflow.steps if self.levels.get(step.id) == level]


def build_dependency_graph(workflow: Workflow) -> DependencyGraph:
    """
    Builds the step graph and assigns each step its level: 0 without
    dependencies, otherwise one more than its deepest dependency.

    Raises CyclicDependencyError when a step is reached again while still on
    the DFS stack, and DanglingDependencyError for unknown dependency ids.
    """
    nodes = [step.id for step in workflow.steps]
    edges = {step.id: list(step.dependencies) for step in workflow.steps}

    for step_id, dependencies in edges.items():
        for dep_id in dependencies:
            if dep_id not in edges:
                raise DanglingDependencyError(f"Step '{step_id}' depends on non-existent step '{dep_id}'")

    graph = DependencyGraph(nodes=nodes, edges=edges)
    marks = {node: UNVISITED for node in nodes}

    for root in nodes:
        if marks[root] == DONE:
            continue
        marks[root] = IN_PROGRESS
        stack = [(root, iter(edges[root]))]
        while stack:
            node_id, pending = stack[-1]
            dep_id = next(pending, None)
            if dep_id is None:
                stack.pop()
                graph.levels[node_id] = max((graph.levels[dep] for dep in edges[node_id]), default=-1) + 1
                marks[node_id] = DONE
            elif marks[dep_id] == IN_PROGRESS:
                raise CyclicDependencyError(dep_id)
            elif marks[dep_id] == UNVISITED:
                marks[dep_id] = IN_PROGRESS
                stack.append((dep_id, iter(edges[dep_id])))

    return graph

"""Builders for workflow test data."""

from shared.types import ExecutionContext, StoredWorkflow, Workflow, WorkflowStep


def make_step(step_id, step_type="transform", dependencies=None, inputs=None, config=None, outputs=None):
    return WorkflowStep(
        id=step_id,
        type=step_type,
        name=step_id,
        inputs=inputs or {},
        outputs=outputs or [],
        config=config or {},
        dependencies=dependencies or [],
    )


def make_workflow(steps, workflow_id="wf"):
    return Workflow(id=workflow_id, name=workflow_id, steps=steps)


def save_workflow(repository, workflow):
    return repository.upsert(StoredWorkflow(
        id=workflow.id,
        key=workflow.id,
        name=workflow.name,
        definition=workflow,
    ))


def make_context(inputs=None, step_results=None):
    return ExecutionContext(
        workflow_id="wf",
        execution_id="exec_test",
        inputs=inputs or {},
        step_results=step_results or {},
    )

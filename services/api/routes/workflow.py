"""Workflow API routes."""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from services.api.domain.models import (
    CompileWorkflowRequest,
    CompileWorkflowResponse,
    ExecutionResponse,
    TriggerWorkflowRequest,
    UpsertWorkflowRequest,
    WorkflowSummary,
)
from services.api.domain.validation import validate_workflow
from services.orchestrator.main import Runtime, get_runtime
from shared.exceptions import CompilationError, ValidationError
from shared.types import StoredWorkflow

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_or_404(runtime: Runtime, id_or_key: str) -> StoredWorkflow:
    stored = runtime.repository.get(id_or_key)
    if stored is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail=f"Workflow {id_or_key} not found")
    return stored


@router.get("/workflows", response_model=List[WorkflowSummary])
async def list_workflows(runtime: Runtime = Depends(get_runtime)):
    return [WorkflowSummary.from_stored(stored) for stored in runtime.repository.list()]


@router.get("/workflows/{id_or_key}", response_model=StoredWorkflow)
async def get_workflow(id_or_key: str, runtime: Runtime = Depends(get_runtime)):
    return _get_or_404(runtime, id_or_key)


@router.put("/workflows", response_model=StoredWorkflow)
async def upsert_workflow(request: UpsertWorkflowRequest, runtime: Runtime = Depends(get_runtime)):
    try:
        validate_workflow(request.definition)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    definition = request.definition
    stored = runtime.repository.upsert(StoredWorkflow(
        id=definition.id,
        key=request.key or definition.id,
        name=request.name or definition.name,
        description=request.description if request.description is not None else definition.description,
        version=definition.version,
        definition=definition,
        visual=request.visual,
    ))

    logger.info("Workflow saved", extra={"workflow_id": stored.id, "key": stored.key})
    return stored


@router.delete("/workflows/{workflow_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workflow(workflow_id: str, runtime: Runtime = Depends(get_runtime)):
    if not runtime.repository.delete(workflow_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail=f"Workflow {workflow_id} not found")


@router.post("/workflows/compile", response_model=CompileWorkflowResponse)
async def compile_workflow(request: CompileWorkflowRequest, runtime: Runtime = Depends(get_runtime)):
    try:
        workflow = runtime.compiler.compile(request.nodes, request.name, request.description)
    except CompilationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    stored = None
    if request.save:
        stored = runtime.repository.upsert(StoredWorkflow(
            id=workflow.id,
            key=workflow.id,
            name=workflow.name,
            description=workflow.description,
            version=workflow.version,
            definition=workflow,
            visual={"nodes": [node.model_dump() for node in request.nodes]},
        ))

    return CompileWorkflowResponse(workflow=workflow, stored=stored)


@router.post("/workflows/trigger/{id_or_key}", response_model=ExecutionResponse)
async def trigger_workflow(
    id_or_key: str,
    request: TriggerWorkflowRequest = None,
    runtime: Runtime = Depends(get_runtime)
):
    stored = _get_or_404(runtime, id_or_key)
    inputs = request.inputs if request else {}

    execution = await runtime.engine.execute_workflow(stored.id, inputs)
    return ExecutionResponse.from_execution(execution)

"""Execution introspection routes."""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from services.api.domain.models import ExecutionListResponse, ExecutionResponse
from services.orchestrator.main import Runtime, get_runtime
from shared.constants import DEFAULT_EXECUTION_PAGE_SIZE
from shared.types import ExecutionStats, ExecutionStatus

router = APIRouter()


@router.get("/executions", response_model=ExecutionListResponse)
async def list_executions(
    limit: int = Query(DEFAULT_EXECUTION_PAGE_SIZE, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    workflow_id: Optional[str] = None,
    status_filter: Optional[ExecutionStatus] = Query(None, alias="status"),
    runtime: Runtime = Depends(get_runtime)
):
    store = runtime.execution_store

    if workflow_id or status_filter:
        matching = [
            e for e in store.list(limit=store.capacity)
            if (not workflow_id or e.workflow_id == workflow_id)
            and (not status_filter or e.status == status_filter)
        ]
        total = len(matching)
        page = matching[offset:offset + limit]
    else:
        total = len(store)
        page = store.list(limit=limit, offset=offset)

    return ExecutionListResponse(
        executions=[ExecutionResponse.from_execution(e) for e in page],
        total=total,
        limit=limit,
        offset=offset,
        stats=store.stats(),
    )


@router.get("/executions/active", response_model=List[ExecutionResponse])
async def list_active_executions(runtime: Runtime = Depends(get_runtime)):
    return [ExecutionResponse.from_execution(e) for e in runtime.execution_store.list_active()]


@router.get("/executions/stats", response_model=ExecutionStats)
async def execution_stats(runtime: Runtime = Depends(get_runtime)):
    return runtime.execution_store.stats()


@router.get("/executions/{execution_id}", response_model=ExecutionResponse)
async def get_execution(execution_id: str, runtime: Runtime = Depends(get_runtime)):
    execution = runtime.execution_store.get(execution_id)
    if execution is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail=f"Execution {execution_id} not found")
    return ExecutionResponse.from_execution(execution)

"""API service for workflow management and execution."""

from fastapi import Depends, FastAPI
from services.api.domain.models import StatusResponse
from services.api.routes.executions import router as executions_router
from services.api.routes.workflow import router as workflow_router
from services.api.middleware import CorrelationIdMiddleware
from services.orchestrator.main import Runtime, get_runtime
from shared.logging_config import setup_logging

setup_logging("api")

app = FastAPI(title="Workflow Orchestration API", version="1.0.0")
app.add_middleware(CorrelationIdMiddleware)

app.include_router(workflow_router, tags=["Workflows"])
app.include_router(executions_router, tags=["Executions"])


@app.get("/")
async def root():
    return {"service": "api", "status": "running"}


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.get("/status", response_model=StatusResponse)
async def engine_status(runtime: Runtime = Depends(get_runtime)):
    return StatusResponse(
        status="running",
        workflow_count=len(runtime.repository.list()),
        step_types=runtime.engine.available_step_types(),
        stats=runtime.execution_store.stats(),
    )

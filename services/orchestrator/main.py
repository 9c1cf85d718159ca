"""Process-wide runtime: repository, execution store, engine and compiler."""

import os
import logging
from dataclasses import dataclass
from functools import lru_cache
import redis
import requests
from services.compiler.compiler import WorkflowCompiler
from services.orchestrator.engine.execution_store import ExecutionStore
from services.orchestrator.engine.orchestrator import WorkflowEngine
from services.orchestrator.infra.builtin_workflows import seed_builtin_workflows
from services.orchestrator.infra.prompt_store import PromptStore
from services.orchestrator.infra.redis_store import WorkflowRepository, create_workflow_repository
from services.worker.infra.llm_provider import OpenAICompletionProvider

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    repository: WorkflowRepository
    execution_store: ExecutionStore
    engine: WorkflowEngine
    compiler: WorkflowCompiler
    prompt_store: PromptStore


def build_runtime() -> Runtime:
    repository = create_workflow_repository()
    seed_builtin_workflows(repository)

    redis_url = os.getenv("REDIS_URL")
    prompt_store = PromptStore(redis.Redis.from_url(redis_url) if redis_url else None)

    execution_store = ExecutionStore()
    engine = WorkflowEngine(
        repository,
        execution_store,
        completion_provider=OpenAICompletionProvider(),
        prompt_store=prompt_store,
        http_session=requests.Session(),
    )

    logger.info("Runtime initialized", extra={
        "store_backend": type(repository).__name__,
        "history_capacity": execution_store.capacity,
        "step_types": engine.available_step_types()
    })
    return Runtime(repository, execution_store, engine, WorkflowCompiler(), prompt_store)


@lru_cache(maxsize=1)
def get_runtime() -> Runtime:
    return build_runtime()

"""Shared fixtures for unit tests."""

import pytest
from services.orchestrator.engine.execution_store import ExecutionStore
from services.orchestrator.engine.orchestrator import WorkflowEngine
from services.orchestrator.infra.redis_store import InMemoryWorkflowRepository


@pytest.fixture
def repository():
    return InMemoryWorkflowRepository()


@pytest.fixture
def execution_store():
    return ExecutionStore(capacity=10)


@pytest.fixture
def engine(repository, execution_store):
    return WorkflowEngine(repository, execution_store)

"""
Tests for the HTTP API using FastAPI's TestClient with an in-memory runtime.
"""

import pytest
from fastapi.testclient import TestClient
from services.api.main import app
from services.compiler.compiler import WorkflowCompiler
from services.orchestrator.engine.execution_store import ExecutionStore
from services.orchestrator.engine.orchestrator import WorkflowEngine
from services.orchestrator.infra.builtin_workflows import seed_builtin_workflows
from services.orchestrator.infra.prompt_store import PromptStore
from services.orchestrator.infra.redis_store import InMemoryWorkflowRepository
from services.orchestrator.main import Runtime, get_runtime

ARITHMETIC_WORKFLOW = {
    "id": "arithmetic",
    "name": "Arithmetic",
    "steps": [
        {"id": "A", "type": "transform", "config": {"script": '{"value": 5}'}},
        {"id": "B", "type": "transform", "dependencies": ["A"],
         "inputs": {"x": "$steps.A.value"}, "config": {"script": '{"value": x * 2}'}},
    ],
}


@pytest.fixture
def runtime():
    repository = InMemoryWorkflowRepository()
    seed_builtin_workflows(repository)
    store = ExecutionStore(capacity=10)
    prompt_store = PromptStore()
    engine = WorkflowEngine(repository, store, prompt_store=prompt_store)
    return Runtime(repository, store, engine, WorkflowCompiler(), prompt_store)


@pytest.fixture
def client(runtime):
    app.dependency_overrides[get_runtime] = lambda: runtime
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").status_code == 200


def test_correlation_id_echoed(client):
    response = client.get("/health", headers={"X-Correlation-ID": "abc"})

    assert response.headers["X-Correlation-ID"] == "abc"


def test_status(client):
    body = client.get("/status").json()

    assert body["workflow_count"] == 2
    assert "transform" in body["step_types"]
    assert body["stats"]["total"] == 0


def test_list_and_get_workflows(client):
    summaries = client.get("/workflows").json()

    assert {s["key"] for s in summaries} == {"channel-overview", "competitor-analysis"}
    overview = next(s for s in summaries if s["key"] == "channel-overview")
    assert overview["step_count"] == 3

    assert client.get("/workflows/channel-overview").json()["definition"]["id"] == "channel-overview"
    assert client.get("/workflows/nope").status_code == 404


def test_upsert_then_trigger(client):
    response = client.put("/workflows", json={"definition": ARITHMETIC_WORKFLOW})
    assert response.status_code == 200
    assert response.json()["key"] == "arithmetic"

    execution = client.post("/workflows/trigger/arithmetic", json={"inputs": {}}).json()

    assert execution["status"] == "completed"
    assert execution["step_results"] == {"A": {"value": 5}, "B": {"value": 10}}
    assert execution["duration_ms"] is not None

    fetched = client.get(f"/executions/{execution['id']}").json()
    assert fetched["status"] == "completed"


def test_upsert_rejects_invalid_definition(client):
    definition = dict(ARITHMETIC_WORKFLOW, steps=[
        {"id": "A", "type": "transform", "dependencies": ["B"]},
        {"id": "B", "type": "transform", "dependencies": ["A"]},
    ])

    response = client.put("/workflows", json={"definition": definition})

    assert response.status_code == 400
    assert "Circular dependency" in response.json()["detail"]


def test_delete_workflow(client, runtime):
    stored = runtime.repository.get("competitor-analysis")

    assert client.delete(f"/workflows/{stored.id}").status_code == 204
    assert client.delete(f"/workflows/{stored.id}").status_code == 404


def test_trigger_unknown_workflow_returns_404(client, runtime):
    response = client.post("/workflows/trigger/missing", json={"inputs": {}})

    assert response.status_code == 404
    assert len(runtime.execution_store) == 0


def test_trigger_records_failed_execution(client):
    execution = client.post("/workflows/trigger/channel-overview", json={"inputs": {}}).json()

    assert execution["status"] == "failed"
    assert execution["errors"][0]["step_id"] == "fetch-channel"
    assert "Access token is required" in execution["errors"][0]["message"]


def test_compile_and_save(client, runtime):
    response = client.post("/workflows/compile", json={
        "name": "Video Digest",
        "save": True,
        "nodes": [
            {"id": "search", "endpoint": "youtube-search", "connections": ["digest"]},
            {"id": "digest", "endpoint": "transform-data"},
        ],
    })

    assert response.status_code == 200
    body = response.json()
    assert body["workflow"]["id"] == "video-digest"
    assert body["stored"]["key"] == "video-digest"
    assert runtime.repository.get("video-digest").visual["nodes"][0]["id"] == "search"


def test_compile_errors_return_400(client):
    response = client.post("/workflows/compile", json={
        "name": "Loop",
        "nodes": [{"id": "a", "connections": ["b"]}, {"id": "b", "connections": ["a"]}],
    })

    assert response.status_code == 400
    assert "Circular dependency" in response.json()["detail"]


def test_execution_listing_filters_and_stats(client):
    client.put("/workflows", json={"definition": ARITHMETIC_WORKFLOW})
    client.post("/workflows/trigger/arithmetic", json={"inputs": {}})
    client.post("/workflows/trigger/channel-overview", json={"inputs": {}})

    listing = client.get("/executions").json()
    assert listing["total"] == 2
    assert listing["stats"]["completed"] == 1
    assert listing["stats"]["success_rate"] == 50.0

    failed = client.get("/executions", params={"status": "failed"}).json()
    assert [e["workflow_id"] for e in failed["executions"]] == ["channel-overview"]

    by_workflow = client.get("/executions", params={"workflow_id": "arithmetic"}).json()
    assert by_workflow["total"] == 1

    assert client.get("/executions/active").json() == []
    assert client.get("/executions/stats").json()["failed"] == 1
    assert client.get("/executions/unknown").status_code == 404

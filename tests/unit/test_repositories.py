"""
Unit tests for workflow repositories and the prompt store.
"""

import json
from unittest.mock import MagicMock, Mock
import pytest
import redis
from services.orchestrator.infra.prompt_store import PromptStore
from services.orchestrator.infra.redis_store import (
    InMemoryWorkflowRepository,
    RedisWorkflowRepository,
    create_workflow_repository,
)
from shared.types import StoredWorkflow
from tests.helpers import make_step, make_workflow


def stored(workflow_id="", key="flow", name="Flow"):
    return StoredWorkflow(
        id=workflow_id,
        key=key,
        name=name,
        definition=make_workflow([make_step("a")], workflow_id=key),
    )


def test_memory_upsert_assigns_id_and_timestamps():
    repository = InMemoryWorkflowRepository()

    saved = repository.upsert(stored())

    assert saved.id
    assert saved.created_at is not None
    assert repository.get(saved.id) == saved
    assert repository.get("flow") == saved


def test_memory_upsert_by_key_preserves_identity():
    repository = InMemoryWorkflowRepository()
    first = repository.upsert(stored(name="v1"))

    second = repository.upsert(stored(name="v2"))

    assert second.id == first.id
    assert second.created_at == first.created_at
    assert second.updated_at >= first.updated_at
    assert [w.name for w in repository.list()] == ["v2"]


def test_memory_list_most_recently_updated_first():
    repository = InMemoryWorkflowRepository()
    repository.upsert(stored(key="old"))
    repository.upsert(stored(key="new"))

    assert [w.key for w in repository.list()] == ["new", "old"]


def test_memory_delete():
    repository = InMemoryWorkflowRepository()
    saved = repository.upsert(stored())

    assert repository.delete(saved.id) is True
    assert repository.delete(saved.id) is False
    assert repository.get("flow") is None


def test_redis_upsert_writes_document_key_and_index():
    client = MagicMock()
    client.get.return_value = None
    client.hget.return_value = None
    pipe = client.pipeline.return_value
    repository = RedisWorkflowRepository(client)

    saved = repository.upsert(stored(workflow_id="wf-1"))

    pipe.set.assert_called_once()
    key, document = pipe.set.call_args.args
    assert key == "workflow:def:wf-1"
    assert json.loads(document)["key"] == "flow"
    pipe.hset.assert_called_once_with("workflow:keys", "flow", "wf-1")
    pipe.zadd.assert_called_once_with("workflow:index", {"wf-1": saved.updated_at.timestamp()})
    pipe.execute.assert_called_once()


def test_redis_get_by_key_falls_back_to_key_hash():
    document = stored(workflow_id="wf-1").model_dump_json()
    client = Mock()
    client.get.side_effect = lambda k: document.encode() if k == "workflow:def:wf-1" else None
    client.hget.return_value = b"wf-1"
    repository = RedisWorkflowRepository(client)

    workflow = repository.get("flow")

    assert workflow.id == "wf-1"
    client.hget.assert_called_once_with("workflow:keys", "flow")


def test_redis_list_follows_index_order():
    documents = {
        f"workflow:def:{wid}": stored(workflow_id=wid, key=wid).model_dump_json().encode()
        for wid in ("a", "b")
    }
    client = Mock()
    client.zrevrange.return_value = [b"b", b"a", b"gone"]
    client.get.side_effect = documents.get
    repository = RedisWorkflowRepository(client)

    assert [w.id for w in repository.list()] == ["b", "a"]


def test_redis_delete_removes_all_entries():
    client = MagicMock()
    client.get.return_value = stored(workflow_id="wf-1").model_dump_json().encode()
    pipe = client.pipeline.return_value
    repository = RedisWorkflowRepository(client)

    assert repository.delete("wf-1") is True
    pipe.delete.assert_called_once_with("workflow:def:wf-1")
    pipe.hdel.assert_called_once_with("workflow:keys", "flow")
    pipe.zrem.assert_called_once_with("workflow:index", "wf-1")


def test_repository_backend_from_environment(monkeypatch):
    monkeypatch.setenv("WORKFLOW_STORE_BACKEND", "memory")
    assert isinstance(create_workflow_repository(), InMemoryWorkflowRepository)

    monkeypatch.setenv("WORKFLOW_STORE_BACKEND", "sqlite")
    with pytest.raises(ValueError, match="sqlite"):
        create_workflow_repository()


# Prompt store

def test_prompt_store_uses_fallbacks_without_redis():
    store = PromptStore(fallbacks={"greeting": "Hello"})

    assert store.get("greeting") == "Hello"
    assert store.get("unknown") == ""


def test_prompt_store_reads_redis_and_normalises_newlines():
    client = Mock()
    client.hget.return_value = b"Line one\\nLine two"
    store = PromptStore(client)

    assert store.get("greeting") == "Line one\nLine two"
    client.hget.assert_called_once_with("prompts:greeting", "template")


def test_prompt_store_caches_lookups():
    client = Mock()
    client.hget.return_value = b"cached"
    store = PromptStore(client)

    store.get("greeting")
    store.get("greeting")

    assert client.hget.call_count == 1

    store.invalidate("greeting")
    store.get("greeting")
    assert client.hget.call_count == 2


def test_prompt_store_expired_entries_reloaded():
    client = Mock()
    client.hget.return_value = b"fresh"
    store = PromptStore(client, ttl_seconds=0)

    store.get("greeting")
    store.get("greeting")

    assert client.hget.call_count == 2


def test_prompt_store_falls_back_on_redis_error():
    client = Mock()
    client.hget.side_effect = redis.ConnectionError("down")
    store = PromptStore(client, fallbacks={"greeting": "fallback"})

    assert store.get("greeting") == "fallback"

"""
Workflow definition repositories: in-memory and Redis backed.
"""

import json
import os
import threading
import uuid
from typing import Dict, List, Optional, Protocol
import redis
from shared.constants import WORKFLOW_DEFINITION_KEY, WORKFLOW_INDEX_KEY, WORKFLOW_KEYS_HASH
from shared.types import StoredWorkflow, utcnow


class WorkflowRepository(Protocol):

    def get(self, id_or_key: str) -> Optional[StoredWorkflow]:
        ...

    def list(self) -> List[StoredWorkflow]:
        ...

    def upsert(self, workflow: StoredWorkflow) -> StoredWorkflow:
        ...

    def delete(self, workflow_id: str) -> bool:
        ...


def _stamp(workflow: StoredWorkflow, existing: Optional[StoredWorkflow]) -> StoredWorkflow:
    now = utcnow()
    updates = {"updated_at": now}
    if existing is not None:
        # The key is the natural identifier and never changes on update
        updates.update({"id": existing.id, "key": existing.key, "created_at": existing.created_at or now})
    else:
        updates.update({"id": workflow.id or str(uuid.uuid4()), "created_at": workflow.created_at or now})
    return workflow.model_copy(update=updates)


class InMemoryWorkflowRepository:
    """Dict-backed repository; upsert matches by id first, then by key"""

    def __init__(self):
        self._workflows: Dict[str, StoredWorkflow] = {}
        self._lock = threading.RLock()

    def get(self, id_or_key: str) -> Optional[StoredWorkflow]:
        with self._lock:
            if id_or_key in self._workflows:
                return self._workflows[id_or_key]
            return next((w for w in self._workflows.values() if w.key == id_or_key), None)

    def list(self) -> List[StoredWorkflow]:
        with self._lock:
            # Newest insertion first among equal timestamps
            workflows = list(self._workflows.values())[::-1]
        return sorted(workflows, key=lambda w: w.updated_at or w.created_at, reverse=True)

    def upsert(self, workflow: StoredWorkflow) -> StoredWorkflow:
        with self._lock:
            existing = self._workflows.get(workflow.id) if workflow.id else None
            if existing is None:
                existing = next((w for w in self._workflows.values() if w.key == workflow.key), None)
            stored = _stamp(workflow, existing)
            self._workflows.pop(stored.id, None)
            self._workflows[stored.id] = stored
            return stored

    def delete(self, workflow_id: str) -> bool:
        with self._lock:
            return self._workflows.pop(workflow_id, None) is not None


class RedisWorkflowRepository:
    """Redis client wrapper storing workflow definitions as JSON documents"""

    def __init__(self, redis_client: Optional[redis.Redis] = None, redis_url: Optional[str] = None):
        if redis_client is None:
            url = redis_url or os.getenv("REDIS_URL", "redis://localhost:6379/0")
            redis_client = redis.Redis.from_url(url, decode_responses=False)
        self.client = redis_client

    def _load(self, workflow_id: str) -> Optional[StoredWorkflow]:
        data = self.client.get(WORKFLOW_DEFINITION_KEY.format(id=workflow_id))
        if not data:
            return None
        return StoredWorkflow.model_validate(json.loads(data))

    def get(self, id_or_key: str) -> Optional[StoredWorkflow]:
        workflow = self._load(id_or_key)
        if workflow is not None:
            return workflow

        workflow_id = self.client.hget(WORKFLOW_KEYS_HASH, id_or_key)
        if not workflow_id:
            return None
        return self._load(workflow_id.decode('utf-8'))

    def list(self) -> List[StoredWorkflow]:
        workflow_ids = self.client.zrevrange(WORKFLOW_INDEX_KEY, 0, -1)
        workflows = []
        for workflow_id in workflow_ids:
            workflow = self._load(workflow_id.decode('utf-8'))
            if workflow is not None:
                workflows.append(workflow)
        return workflows

    def upsert(self, workflow: StoredWorkflow) -> StoredWorkflow:
        existing = self._load(workflow.id) if workflow.id else None
        if existing is None:
            existing = self.get(workflow.key)
        stored = _stamp(workflow, existing)

        pipe = self.client.pipeline()
        pipe.set(WORKFLOW_DEFINITION_KEY.format(id=stored.id), stored.model_dump_json())
        pipe.hset(WORKFLOW_KEYS_HASH, stored.key, stored.id)
        pipe.zadd(WORKFLOW_INDEX_KEY, {stored.id: stored.updated_at.timestamp()})
        pipe.execute()
        return stored

    def delete(self, workflow_id: str) -> bool:
        existing = self._load(workflow_id)
        if existing is None:
            return False

        pipe = self.client.pipeline()
        pipe.delete(WORKFLOW_DEFINITION_KEY.format(id=workflow_id))
        pipe.hdel(WORKFLOW_KEYS_HASH, existing.key)
        pipe.zrem(WORKFLOW_INDEX_KEY, workflow_id)
        pipe.execute()
        return True


def create_workflow_repository() -> WorkflowRepository:
    backend = os.getenv("WORKFLOW_STORE_BACKEND", "memory").lower()
    if backend == "redis":
        return RedisWorkflowRepository()
    if backend == "memory":
        return InMemoryWorkflowRepository()
    raise ValueError(f"Unknown WORKFLOW_STORE_BACKEND: {backend}")

"""Durable store collaborator for work items."""

from bikeshop.store.base import WorkflowStore
from bikeshop.store.redis_store import RedisWorkflowStore

__all__ = ["RedisWorkflowStore", "WorkflowStore"]

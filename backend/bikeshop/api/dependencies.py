"""FastAPI dependencies wiring the store and services.

Tests override ``get_redis_client`` to run against fakeredis.
"""

from fastapi import Depends
from redis.asyncio import Redis

from bikeshop.core.config import Settings, get_settings
from bikeshop.core.logging import bind_work_context
from bikeshop.db.redis import get_redis
from bikeshop.services.cockpit_service import CockpitService
from bikeshop.services.completion_policy import CompletionPolicy
from bikeshop.services.workflow_service import WorkflowService
from bikeshop.store.redis_store import RedisWorkflowStore


def get_redis_client() -> Redis:
    return get_redis()


def get_store(
    redis: Redis = Depends(get_redis_client),
    settings: Settings = Depends(get_settings),
) -> RedisWorkflowStore:
    return RedisWorkflowStore(redis, prefix=settings.redis_key_prefix)


def get_completion_policy(
    redis: Redis = Depends(get_redis_client),
    settings: Settings = Depends(get_settings),
) -> CompletionPolicy:
    return CompletionPolicy(redis, settings.default_completion_fields, prefix=settings.redis_key_prefix)


def get_workflow_service(
    store: RedisWorkflowStore = Depends(get_store),
    policy: CompletionPolicy = Depends(get_completion_policy),
    settings: Settings = Depends(get_settings),
) -> WorkflowService:
    return WorkflowService(store, policy, settings)


def get_cockpit_service(
    store: RedisWorkflowStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> CockpitService:
    return CockpitService(store, settings)


async def bind_item_context(item_id: str) -> None:
    bind_work_context(item_id=item_id)


async def bind_workshop_context(workshop_id: str) -> None:
    bind_work_context(workshop_id=workshop_id)

"""Shared test fixtures for all test groups."""

from datetime import UTC, datetime

import pytest
from fakeredis import aioredis

from bikeshop.core.config import Settings
from bikeshop.domain.events import Actor
from bikeshop.domain.statuses import EntityKind
from bikeshop.domain.work_items import new_work_item
from bikeshop.services.completion_policy import CompletionPolicy
from bikeshop.services.workflow_service import WorkflowService
from bikeshop.store.redis_store import RedisWorkflowStore

NOW = datetime(2024, 6, 12, 10, 0, tzinfo=UTC)


@pytest.fixture
def now():
    """Fixed reference time: Wednesday 2024-06-12 12:00 in Europe/Berlin."""
    return NOW


@pytest.fixture
def mechanic():
    return Actor(id="emp-anna", display_name="Anna")


@pytest.fixture
def qc_mechanic():
    return Actor(id="emp-ben", display_name="Ben")


@pytest.fixture
def settings():
    return Settings(
        workshop_timezone="Europe/Berlin",
        trash_retention_days=30,
        upcoming_window_days=3,
        default_completion_fields=["brand", "model", "serial_number"],
        redis_key_prefix="test",
    )


@pytest.fixture
def order(now):
    """Fresh repair order in its initial status (not persisted)."""
    item, _ = new_work_item(EntityKind.ORDER, "shop-1", title="Order 1001", item_id="order-1", now=now)
    return item


@pytest.fixture
def build(now):
    """Fresh bike build in its initial status (not persisted)."""
    item, _ = new_work_item(EntityKind.BIKE_BUILD, "shop-1", title="Build 7", item_id="build-1", now=now)
    return item


@pytest.fixture
async def redis_client():
    """Create a fake Redis client for testing."""
    client = aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def store(redis_client):
    return RedisWorkflowStore(redis_client, prefix="test")


@pytest.fixture
def policy(redis_client, settings):
    return CompletionPolicy(redis_client, settings.default_completion_fields, prefix="test")


@pytest.fixture
def service(store, policy, settings):
    return WorkflowService(store, policy, settings)

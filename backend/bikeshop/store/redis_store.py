"""Redis-backed workflow store.

Layout (all keys under the configured prefix):
- ``{prefix}:item:{id}``                 hash with ``data`` (entity JSON) and ``version``
- ``{prefix}:item:{id}:history``         list of event JSON, oldest first
- ``{prefix}:workshop:{id}:items``       set of item ids (purged items are removed)

Writes use WATCH/MULTI on the entity and history keys plus a version check,
so a status write and its history append commit together or not at all.
"""

from collections.abc import AsyncGenerator, Callable, Sequence
from contextlib import asynccontextmanager
from datetime import datetime

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError, WatchError

from bikeshop.core.exceptions import (
    ConcurrentModificationError,
    DuplicateEntityError,
    InvalidEventError,
    NotFoundError,
    StoreUnavailableError,
)
from bikeshop.domain.events import LIFECYCLE_EVENT_KINDS, Event, event_from_json, event_to_json, stamp_events
from bikeshop.domain.statuses import PURGED, EntityKind
from bikeshop.domain.work_items import WorkItem

logger = structlog.get_logger(__name__)


class RedisWorkflowStore:
    """Stores work items and their append-only histories in Redis."""

    def __init__(self, redis: Redis, prefix: str = "bikeshop"):
        self.redis = redis
        self.prefix = prefix

    def _item_key(self, item_id: str) -> str:
        return f"{self.prefix}:item:{item_id}"

    def _history_key(self, item_id: str) -> str:
        return f"{self.prefix}:item:{item_id}:history"

    def _index_key(self, workshop_id: str) -> str:
        return f"{self.prefix}:workshop:{workshop_id}:items"

    @staticmethod
    def _dump(item: WorkItem) -> str:
        return item.model_dump_json(exclude={"history"})

    @asynccontextmanager
    async def _guard(self, operation: str, item_id: str | None = None) -> AsyncGenerator[None, None]:
        """Translate Redis failures into workflow errors."""
        try:
            yield
        except WatchError as exc:
            logger.info("store_write_conflict", operation=operation, item_id=item_id)
            raise ConcurrentModificationError(item_id or "") from exc
        except RedisError as exc:
            logger.warning(
                "store_unavailable",
                operation=operation,
                item_id=item_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise StoreUnavailableError(operation, str(exc)) from exc

    async def create(self, item: WorkItem, events: Sequence[Event], now: datetime | None = None) -> WorkItem:
        item_key = self._item_key(item.id)
        async with self._guard("create", item.id):
            async with self.redis.pipeline(transaction=True) as pipe:
                await pipe.watch(item_key)
                if await pipe.exists(item_key):
                    raise DuplicateEntityError(item.id)

                stamped = stamp_events(list(events), None, 0, now)
                stored = item.model_copy(update={"version": 1, "history": ()})

                pipe.multi()
                pipe.hset(item_key, mapping={"data": self._dump(stored), "version": stored.version})
                if stamped:
                    pipe.rpush(self._history_key(item.id), *[event_to_json(e) for e in stamped])
                pipe.sadd(self._index_key(item.workshop_id), item.id)
                await pipe.execute()

        return stored.model_copy(update={"history": tuple(stamped)})

    async def read_entity(self, item_id: str) -> WorkItem:
        async with self._guard("read_entity", item_id):
            raw = await self.redis.hget(self._item_key(item_id), "data")
        if raw is None:
            raise NotFoundError(item_id)
        return WorkItem.model_validate_json(raw)

    async def read_history(self, item_id: str) -> list[Event]:
        async with self._guard("read_history", item_id):
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.exists(self._item_key(item_id))
                pipe.lrange(self._history_key(item_id), 0, -1)
                exists, raw_events = await pipe.execute()
        if not exists:
            raise NotFoundError(item_id)
        return [event_from_json(raw) for raw in raw_events]

    async def get(self, item_id: str) -> WorkItem:
        async with self._guard("get", item_id):
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.hget(self._item_key(item_id), "data")
                pipe.lrange(self._history_key(item_id), 0, -1)
                raw, raw_events = await pipe.execute()
        if raw is None:
            raise NotFoundError(item_id)
        item = WorkItem.model_validate_json(raw)
        return item.model_copy(update={"history": tuple(event_from_json(e) for e in raw_events)})

    async def _commit(
        self,
        item_id: str,
        build: Callable[[WorkItem], WorkItem],
        events: Sequence[Event],
        expected_version: int | None,
        now: datetime | None,
        operation: str,
    ) -> tuple[WorkItem, list[Event]]:
        """Read-check-write under WATCH; nothing is written unless EXEC succeeds.

        Returns the stored entity hydrated with the history as of this commit,
        so callers never need a second read.
        """
        item_key = self._item_key(item_id)
        history_key = self._history_key(item_id)

        async with self._guard(operation, item_id):
            async with self.redis.pipeline(transaction=True) as pipe:
                await pipe.watch(item_key, history_key)

                raw = await pipe.hget(item_key, "data")
                if raw is None:
                    raise NotFoundError(item_id)
                current = WorkItem.model_validate_json(raw)
                # Purged items are tombstones: readable, never written again
                if current.status == PURGED:
                    raise NotFoundError(item_id)
                if expected_version is not None and current.version != expected_version:
                    raise ConcurrentModificationError(item_id, expected_version, current.version)

                prior = [event_from_json(e) for e in await pipe.lrange(history_key, 0, -1)]
                stamped = stamp_events(list(events), prior[-1] if prior else None, len(prior), now)
                stored = build(current).model_copy(
                    update={"id": current.id, "version": current.version + 1, "history": ()}
                )

                pipe.multi()
                pipe.hset(item_key, mapping={"data": self._dump(stored), "version": stored.version})
                if stamped:
                    pipe.rpush(history_key, *[event_to_json(e) for e in stamped])
                if stored.status == PURGED:
                    pipe.srem(self._index_key(stored.workshop_id), stored.id)
                await pipe.execute()

        return stored.model_copy(update={"history": tuple(prior + stamped)}), stamped

    async def write_entity_and_append_events(
        self,
        item: WorkItem,
        events: Sequence[Event],
        expected_version: int,
        now: datetime | None = None,
    ) -> tuple[WorkItem, list[Event]]:
        return await self._commit(
            item.id,
            lambda _current: item,
            events,
            expected_version,
            now,
            "write_entity_and_append_events",
        )

    async def append_events(
        self,
        item_id: str,
        events: Sequence[Event],
        now: datetime | None = None,
    ) -> list[Event]:
        """Append events that leave the entity record unchanged (version still bumps)."""
        for event in events:
            if event.kind in LIFECYCLE_EVENT_KINDS:
                raise InvalidEventError(item_id, event.kind)

        _, stamped = await self._commit(
            item_id,
            lambda current: current,
            events,
            None,
            now,
            "append_events",
        )
        return stamped

    async def list_entities(self, workshop_id: str, kind: EntityKind | None = None) -> list[WorkItem]:
        async with self._guard("list_entities"):
            item_ids = sorted(await self.redis.smembers(self._index_key(workshop_id)))
            if not item_ids:
                return []
            async with self.redis.pipeline(transaction=False) as pipe:
                for item_id in item_ids:
                    pipe.hget(self._item_key(item_id), "data")
                raws = await pipe.execute()

        items = [WorkItem.model_validate_json(raw) for raw in raws if raw is not None]
        if kind is not None:
            items = [item for item in items if item.kind == EntityKind(kind)]
        return sorted(items, key=lambda item: (item.created_at is None, item.created_at, item.id))

    async def list_workshops(self) -> list[str]:
        """Ids of workshops that have at least one non-purged item."""
        pattern = self._index_key("*")
        head, tail = pattern.split("*", 1)
        async with self._guard("list_workshops"):
            keys = [key async for key in self.redis.scan_iter(match=pattern)]
        return sorted(key[len(head) : len(key) - len(tail)] for key in keys)

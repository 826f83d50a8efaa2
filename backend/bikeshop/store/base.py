"""Durable store protocol for work items and their histories.

The workflow core depends only on this interface; ``RedisWorkflowStore`` is
the production implementation.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol, runtime_checkable

from bikeshop.domain.events import Event
from bikeshop.domain.statuses import EntityKind
from bikeshop.domain.work_items import WorkItem


@runtime_checkable
class WorkflowStore(Protocol):
    """Protocol for the durable store collaborator.

    Every write is a single atomic operation: the entity record and its
    history either change together or not at all.
    """

    async def create(self, item: WorkItem, events: Sequence[Event], now: datetime | None = None) -> WorkItem:
        """Persist a new work item with its initial events.

        Raises:
            DuplicateEntityError: an item with the same id exists
            StoreUnavailableError: the store failed or timed out
        """
        ...

    async def read_entity(self, item_id: str) -> WorkItem:
        """Return the entity record without history.

        Raises:
            NotFoundError: no such item
        """
        ...

    async def read_history(self, item_id: str) -> list[Event]:
        """Return the full history, oldest first.

        Raises:
            NotFoundError: no such item
        """
        ...

    async def get(self, item_id: str) -> WorkItem:
        """Return the entity with its history hydrated, read consistently."""
        ...

    async def write_entity_and_append_events(
        self,
        item: WorkItem,
        events: Sequence[Event],
        expected_version: int,
        now: datetime | None = None,
    ) -> tuple[WorkItem, list[Event]]:
        """Atomically replace the entity record and append events.

        Returns:
            Tuple of (stored entity with the history as of this commit, appended events)

        Raises:
            NotFoundError: no such item, or the item is purged
            ConcurrentModificationError: stored version differs from expected_version
                or another writer committed during the operation
            StoreUnavailableError: the store failed or timed out
        """
        ...

    async def append_events(
        self,
        item_id: str,
        events: Sequence[Event],
        now: datetime | None = None,
    ) -> list[Event]:
        """Append events that do not change the entity record (bumping its version) atomically.

        Raises:
            InvalidEventError: a lifecycle event (creation, status_change,
                completion, purge) must go through write_entity_and_append_events
            NotFoundError: no such item, or the item is purged
        """
        ...

    async def list_entities(self, workshop_id: str, kind: EntityKind | None = None) -> list[WorkItem]:
        """Return the workshop's non-purged items without history."""
        ...

    async def list_workshops(self) -> list[str]:
        """Ids of workshops that have at least one non-purged item."""
        ...

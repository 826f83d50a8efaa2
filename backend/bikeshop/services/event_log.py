"""EventLog: append-only history access for work items.

Thin layer over the store. ``record`` is the path status transitions take so
the status write and the history append land in one atomic store operation.
"""

from collections.abc import Sequence
from datetime import datetime

import structlog

from bikeshop.domain.events import Event
from bikeshop.domain.work_items import WorkItem
from bikeshop.store.base import WorkflowStore

logger = structlog.get_logger(__name__)


class EventLog:
    """Ordered, immutable history per work item."""

    def __init__(self, store: WorkflowStore):
        self.store = store

    async def append(self, item_id: str, event: Event, now: datetime | None = None) -> Event:
        """Append one non-lifecycle event, assigning id, sequence and timestamp if absent.

        Args:
            item_id: Work item identifier
            event: Event to append
            now: Current time (for deterministic testing)

        Returns:
            The event as stored

        Raises:
            InvalidEventError: the event kind changes the entity record; use record()
            NotFoundError: the work item does not exist or is purged
            StoreUnavailableError: the store failed; nothing was appended
        """
        stamped = await self.store.append_events(item_id, [event], now=now)
        logger.debug("event_appended", item_id=item_id, kind=stamped[0].kind, sequence=stamped[0].sequence)
        return stamped[0]

    async def record(
        self,
        item: WorkItem,
        events: Sequence[Event],
        expected_version: int,
        now: datetime | None = None,
    ) -> tuple[WorkItem, list[Event]]:
        """Write the updated item and append its events as one operation.

        Raises:
            NotFoundError: the work item does not exist or is purged
            ConcurrentModificationError: the item changed since it was read
            StoreUnavailableError: the store failed; nothing was written
        """
        stored, stamped = await self.store.write_entity_and_append_events(item, events, expected_version, now=now)
        logger.debug(
            "events_recorded",
            item_id=item.id,
            version=stored.version,
            kinds=[e.kind for e in stamped],
        )
        return stored, stamped

    async def read(self, item_id: str) -> list[Event]:
        """Full history, oldest first.

        Raises:
            NotFoundError: the work item does not exist
        """
        return await self.store.read_history(item_id)

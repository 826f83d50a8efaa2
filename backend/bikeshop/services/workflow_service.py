"""WorkflowService: lifecycle operations on orders and bike builds.

Each mutating call reads the item, runs the pure domain function and commits
the updated item plus its events through the EventLog in one store operation.
Business rules live in bikeshop.domain; this layer is orchestration only.
"""

from collections.abc import Callable, Mapping
from datetime import UTC, datetime

import structlog

from bikeshop.core.config import Settings
from bikeshop.core.exceptions import InvalidTransitionError, StoreUnavailableError, WorkshopError
from bikeshop.domain import activity, status_machine
from bikeshop.domain.events import Actor, Event
from bikeshop.domain.statuses import INITIAL_STATUS, TRASH, EntityKind
from bikeshop.domain.work_items import WorkItem, new_work_item
from bikeshop.services.completion_policy import CompletionPolicy
from bikeshop.services.event_log import EventLog
from bikeshop.store.base import WorkflowStore

logger = structlog.get_logger(__name__)


class WorkflowService:
    """Service layer for work item lifecycles."""

    def __init__(self, store: WorkflowStore, policy: CompletionPolicy, settings: Settings):
        self.store = store
        self.event_log = EventLog(store)
        self.policy = policy
        self.settings = settings

    async def create_item(
        self,
        kind: EntityKind | str,
        workshop_id: str,
        *,
        title: str = "",
        due_date: datetime | None = None,
        attributes: dict[str, str] | None = None,
        is_leasing: bool = False,
        checklist: list[str] | None = None,
        actor: Actor | None = None,
        item_id: str | None = None,
        now: datetime | None = None,
    ) -> WorkItem:
        """Create an order or build in its initial status with one creation event."""
        now = now or datetime.now(UTC)
        item, creation = new_work_item(
            kind,
            workshop_id,
            title=title,
            due_date=due_date,
            attributes=attributes,
            is_leasing=is_leasing,
            checklist=checklist,
            actor=actor,
            item_id=item_id,
            now=now,
        )
        created = await self.store.create(item, [creation], now=now)
        logger.info("work_item_created", item_id=created.id, kind=created.kind.value, workshop_id=workshop_id)
        return created

    async def get_item(self, item_id: str) -> WorkItem:
        """Work item with its history hydrated."""
        return await self.store.get(item_id)

    async def history(self, item_id: str) -> list[Event]:
        return await self.event_log.read(item_id)

    async def _apply(
        self,
        item_id: str,
        operation: str,
        change: Callable[[WorkItem], tuple[WorkItem, list[Event]]],
        expected_version: int | None,
        now: datetime,
        current: WorkItem | None = None,
    ) -> WorkItem:
        """Read, apply a pure change, commit atomically and return the committed item.

        The returned item carries the history as of this commit, not a later re-read.

        ``expected_version`` lets callers pin the version they displayed; when
        omitted the version just read is used, so a concurrent writer still
        causes a ConcurrentModificationError instead of a lost update.
        """
        if current is None:
            current = await self.store.read_entity(item_id)
        version = current.version if expected_version is None else expected_version

        try:
            updated, events = change(current)
        except WorkshopError as exc:
            logger.info(
                f"{operation}_rejected",
                item_id=item_id,
                status=current.status,
                error_kind=exc.kind,
                reason=exc.message,
            )
            raise

        stored, stamped = await self.event_log.record(updated, events, version, now=now)
        logger.info(
            f"{operation}_committed",
            item_id=item_id,
            status=stored.status,
            version=stored.version,
            events=[e.kind for e in stamped],
        )
        return stored

    async def transition(
        self,
        item_id: str,
        to_status: str,
        actor: Actor | None = None,
        *,
        pickup_code: str | None = None,
        expected_version: int | None = None,
        now: datetime | None = None,
    ) -> WorkItem:
        """Request a status change.

        Moving a build to ``assembled`` through this path applies the
        workshop's completion policy with no collected data; use
        ``complete_build`` to supply the bike data.

        Raises:
            NotFoundError, UnknownStatusError, InvalidTransitionError,
            IncompleteDataError, ConcurrentModificationError, StoreUnavailableError
        """
        now = now or datetime.now(UTC)
        required: frozenset[str] = frozenset()
        current = await self.store.read_entity(item_id)
        if current.kind == EntityKind.BIKE_BUILD:
            required = await self.policy.required_fields(current.workshop_id)

        def change(item: WorkItem) -> tuple[WorkItem, list[Event]]:
            outcome = status_machine.transition(
                item,
                to_status,
                actor,
                now=now,
                required_fields=required,
                pickup_code=pickup_code,
            )
            return outcome.item, [outcome.event]

        return await self._apply(item_id, "transition", change, expected_version, now, current)

    async def complete_build(
        self,
        item_id: str,
        collected_fields: Mapping[str, str | None],
        actor: Actor | None = None,
        *,
        expected_version: int | None = None,
        now: datetime | None = None,
    ) -> WorkItem:
        """Finish an assembly with the bike data collected at the bench."""
        now = now or datetime.now(UTC)
        current = await self.store.read_entity(item_id)
        required = await self.policy.required_fields(current.workshop_id)

        def change(item: WorkItem) -> tuple[WorkItem, list[Event]]:
            outcome = status_machine.complete_build(item, collected_fields, required, actor, now=now)
            return outcome.item, list(outcome.events)

        return await self._apply(item_id, "completion", change, expected_version, now, current)

    async def trash(self, item_id: str, actor: Actor | None = None, *, now: datetime | None = None) -> WorkItem:
        """Soft-delete: move the item to the trash (purged after the retention window)."""
        return await self.transition(item_id, TRASH, actor, now=now)

    async def restore(self, item_id: str, actor: Actor | None = None, *, now: datetime | None = None) -> WorkItem:
        """Bring a trashed item back to its kind's initial status."""
        current = await self.store.read_entity(item_id)
        if current.status != TRASH:
            raise InvalidTransitionError(
                current.kind.value,
                current.status,
                INITIAL_STATUS[current.kind],
                "Only trashed items can be restored",
            )
        return await self.transition(item_id, INITIAL_STATUS[current.kind], actor, now=now)

    async def add_note(
        self, item_id: str, text: str, actor: Actor | None = None, *, now: datetime | None = None
    ) -> WorkItem:
        now = now or datetime.now(UTC)

        def change(item: WorkItem) -> tuple[WorkItem, list[Event]]:
            updated, event = activity.add_note(item, text, actor, now=now)
            return updated, [event]

        return await self._apply(item_id, "note", change, None, now)

    async def assign(
        self,
        item_id: str,
        employee: Actor,
        actor: Actor | None = None,
        *,
        role: str = "mechanic",
        removed: bool = False,
        now: datetime | None = None,
    ) -> WorkItem:
        now = now or datetime.now(UTC)

        def change(item: WorkItem) -> tuple[WorkItem, list[Event]]:
            updated, event = activity.assign(item, employee, actor, role=role, removed=removed, now=now)
            return updated, [event]

        return await self._apply(item_id, "assignment", change, None, now)

    async def update_checklist(
        self,
        item_id: str,
        entry: str,
        completed: bool,
        actor: Actor | None = None,
        *,
        now: datetime | None = None,
    ) -> WorkItem:
        now = now or datetime.now(UTC)

        def change(item: WorkItem) -> tuple[WorkItem, list[Event]]:
            updated, event = activity.update_checklist(item, entry, completed, actor, now=now)
            return updated, [event]

        return await self._apply(item_id, "checklist_update", change, None, now)

    async def reschedule(
        self,
        item_id: str,
        due_date: datetime | None,
        actor: Actor | None = None,
        *,
        now: datetime | None = None,
    ) -> WorkItem:
        now = now or datetime.now(UTC)

        def change(item: WorkItem) -> tuple[WorkItem, list[Event]]:
            updated, event = activity.reschedule(item, due_date, actor, now=now)
            return updated, [event]

        return await self._apply(item_id, "schedule_change", change, None, now)

    async def purge_expired(self, workshop_id: str, *, now: datetime | None = None) -> list[str]:
        """Retention sweep: purge every trashed item older than the retention window.

        Items that change while the sweep runs are skipped and picked up by
        the next sweep.

        Returns:
            Ids of purged items
        """
        now = now or datetime.now(UTC)
        retention = self.settings.trash_retention_days
        purged: list[str] = []

        for item in await self.store.list_entities(workshop_id):
            if not status_machine.is_purge_due(item, now, retention):
                continue

            def change(current: WorkItem) -> tuple[WorkItem, list[Event]]:
                outcome = status_machine.purge(current, now, retention)
                return outcome.item, [outcome.event]

            try:
                await self._apply(item.id, "purge", change, item.version, now, item)
            except StoreUnavailableError:
                raise
            except WorkshopError as exc:
                logger.info("purge_skipped", item_id=item.id, error_kind=exc.kind)
                continue
            purged.append(item.id)

        logger.info("trash_purged", workshop_id=workshop_id, count=len(purged), retention_days=retention)
        return purged

"""Non-status history events: notes, assignments, checklist ticks, rescheduling.

Same shape as the status machine: take a work item, return the updated copy
and the event to append. Nothing here persists.
"""

from datetime import UTC, datetime

from bikeshop.core.exceptions import NotFoundError
from bikeshop.domain.events import (
    Actor,
    AssignmentEvent,
    AssignmentPayload,
    ChecklistUpdateEvent,
    ChecklistUpdatePayload,
    NoteEvent,
    NotePayload,
    ScheduleChangeEvent,
    ScheduleChangePayload,
)
from bikeshop.domain.statuses import PURGED
from bikeshop.domain.work_items import WorkItem


def _require_live(item: WorkItem) -> None:
    if item.status == PURGED:
        raise NotFoundError(item.id)


def add_note(
    item: WorkItem,
    text: str,
    actor: Actor | None = None,
    *,
    now: datetime | None = None,
) -> tuple[WorkItem, NoteEvent]:
    now = now or datetime.now(UTC)
    _require_live(item)
    event = NoteEvent(timestamp=now, actor=actor, payload=NotePayload(text=text))
    return item.model_copy(update={"updated_at": now}), event


def assign(
    item: WorkItem,
    employee: Actor,
    actor: Actor | None = None,
    *,
    role: str = "mechanic",
    removed: bool = False,
    now: datetime | None = None,
) -> tuple[WorkItem, AssignmentEvent]:
    """Add or remove an employee as mechanic or QC mechanic.

    Removing an employee who is not assigned still records the event; the
    history reflects what was requested.
    """
    now = now or datetime.now(UTC)
    _require_live(item)

    updates: dict = {"updated_at": now}
    if role == "qc":
        if removed:
            if item.qc_mechanic_id == employee.id:
                updates["qc_mechanic_id"] = None
        else:
            updates["qc_mechanic_id"] = employee.id
    elif removed:
        updates["mechanic_ids"] = tuple(m for m in item.mechanic_ids if m != employee.id)
    elif employee.id not in item.mechanic_ids:
        updates["mechanic_ids"] = item.mechanic_ids + (employee.id,)

    event = AssignmentEvent(
        timestamp=now,
        actor=actor,
        payload=AssignmentPayload(employee=employee, role=role, removed=removed),
    )
    return item.model_copy(update=updates), event


def update_checklist(
    item: WorkItem,
    entry: str,
    completed: bool,
    actor: Actor | None = None,
    *,
    now: datetime | None = None,
) -> tuple[WorkItem, ChecklistUpdateEvent]:
    """Tick or untick one checklist entry.

    Raises:
        NotFoundError: the entry is not on the item's checklist
    """
    now = now or datetime.now(UTC)
    _require_live(item)
    if entry not in item.checklist:
        raise NotFoundError(entry, entity_type="checklist entry")

    checklist = {**item.checklist, entry: completed}
    event = ChecklistUpdateEvent(
        timestamp=now,
        actor=actor,
        payload=ChecklistUpdatePayload(
            item=entry,
            completed=completed,
            completed_count=sum(1 for done in checklist.values() if done),
            total_count=len(checklist),
        ),
    )
    return item.model_copy(update={"checklist": checklist, "updated_at": now}), event


def reschedule(
    item: WorkItem,
    due_date: datetime | None,
    actor: Actor | None = None,
    *,
    now: datetime | None = None,
) -> tuple[WorkItem, ScheduleChangeEvent]:
    """Set or clear the due date."""
    now = now or datetime.now(UTC)
    _require_live(item)
    event = ScheduleChangeEvent(
        timestamp=now,
        actor=actor,
        payload=ScheduleChangePayload(old_due_date=item.due_date, new_due_date=due_date),
    )
    return item.model_copy(update={"due_date": due_date, "updated_at": now}), event

"""Work item model shared by repair orders and bike builds."""

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from bikeshop.domain.events import Actor, CreationEvent, CreationPayload, Event
from bikeshop.domain.statuses import INITIAL_STATUS, EntityKind


class WorkItem(BaseModel):
    """One unit of work: a repair order or a bike-assembly build.

    Instances are frozen; the status machine returns updated copies.
    ``history`` is hydrated from the store on read and is not part of the
    entity record itself.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    kind: EntityKind
    workshop_id: str
    status: str
    title: str = ""
    due_date: datetime | None = None
    version: int = 0
    attributes: dict[str, str] = Field(default_factory=dict)
    is_leasing: bool = False
    pickup_code: str | None = None
    mechanic_ids: tuple[str, ...] = ()
    qc_mechanic_id: str | None = None
    checklist: dict[str, bool] = Field(default_factory=dict)
    trashed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    history: tuple[Event, ...] = ()

    def record(self) -> dict:
        """Serializable entity record without the hydrated history."""
        return self.model_dump(mode="json", exclude={"history"})


def new_work_item(
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
) -> tuple[WorkItem, CreationEvent]:
    """Build a work item in its initial status plus its creation event.

    Args:
        kind: Order or bike build
        workshop_id: Owning workshop
        title: Short display title (customer + bike, build reference, ...)
        due_date: Optional deadline
        attributes: Bike/customer data
        is_leasing: Leasing orders need a pickup code before pickup
        checklist: Names of checklist items, all initially open
        actor: Who created the item (None for system-created items)
        item_id: Explicit id (generated if omitted)
        now: Current time (for deterministic testing)

    Returns:
        Tuple of (WorkItem at version 0, CreationEvent to append)
    """
    now = now or datetime.now(UTC)
    kind = EntityKind(kind)
    status = INITIAL_STATUS[kind]

    item = WorkItem(
        id=item_id or str(uuid.uuid4()),
        kind=kind,
        workshop_id=workshop_id,
        status=status,
        title=title,
        due_date=due_date,
        attributes=dict(attributes or {}),
        is_leasing=is_leasing,
        checklist={name: False for name in (checklist or [])},
        created_at=now,
        updated_at=now,
    )
    event = CreationEvent(
        timestamp=now,
        actor=actor,
        payload=CreationPayload(status=status, title=title),
    )
    return item, event

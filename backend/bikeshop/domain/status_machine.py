"""Status transitions, guards and side effects for work items.

Pure domain logic: every function returns new objects and never touches the
store. Persisting the outcome is the event log's job, so the status write and
the history append can be committed as one operation.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from bikeshop.core.exceptions import IncompleteDataError, InvalidTransitionError
from bikeshop.domain.events import (
    Actor,
    CompletionEvent,
    CompletionPayload,
    Event,
    PurgeEvent,
    PurgePayload,
    StatusChangeEvent,
    StatusChangePayload,
    as_utc,
)
from bikeshop.domain.statuses import (
    PURGED,
    TRASH,
    BuildStatus,
    EntityKind,
    OrderStatus,
    allowed_targets,
    is_valid_status,
    require_status,
)
from bikeshop.domain.work_items import WorkItem

# Satisfied by the acting employee rather than a typed-in value
MECHANIC_NAME_FIELD = "mechanic_name"

# Bike data a workshop may require on build completion
BUILD_DATA_FIELDS: dict[str, str] = {
    "brand": "Brand",
    "model": "Model",
    "color": "Color",
    "frame_size": "Frame size",
    "internal_number": "Internal number",
    "serial_number": "Frame serial number",
    "battery_serial": "Battery serial number",
    "notes": "Notes",
    MECHANIC_NAME_FIELD: "Completing mechanic",
}


@dataclass
class TransitionCheck:
    """Result of a transition check."""

    allowed: bool
    reason: str = ""


@dataclass(frozen=True)
class TransitionOutcome:
    """Updated work item plus the single event that records the change."""

    item: WorkItem
    event: Event


@dataclass(frozen=True)
class CompletionOutcome:
    """Updated build plus its status_change and completion events, in append order."""

    item: WorkItem
    events: tuple[Event, ...]


def check_transition(kind: EntityKind | str, from_status: str, to_status: str) -> TransitionCheck:
    """Decide whether ``from_status -> to_status`` is legal for ``kind``.

    Pure function -- no side effects, no store access.

    Rules:
        - Both statuses must belong to the kind's enumeration
        - Same-status transitions are rejected
        - ``purged`` is only reachable through the retention sweep
        - Anything not listed in the adjacency table is rejected
    """
    kind = EntityKind(kind)
    if not is_valid_status(kind, from_status):
        return TransitionCheck(False, f"Unknown current status '{from_status}'")
    if not is_valid_status(kind, to_status):
        return TransitionCheck(False, f"Unknown target status '{to_status}'")

    if from_status == to_status:
        return TransitionCheck(False, "Already in this status")

    if to_status == PURGED:
        return TransitionCheck(False, "Purged items are only removed by the retention sweep")

    if to_status not in allowed_targets(kind, from_status):
        return TransitionCheck(False, "This status change is not allowed from the current state")

    return TransitionCheck(True)


def can_transition(kind: EntityKind | str, from_status: str, to_status: str) -> bool:
    return check_transition(kind, from_status, to_status).allowed


def missing_completion_fields(
    item: WorkItem,
    collected_fields: Mapping[str, str | None],
    required_fields: Iterable[str],
    actor: Actor | None = None,
) -> set[str]:
    """Return the required fields that were not supplied with a non-blank value.

    ``mechanic_name`` counts as supplied when an acting employee is known.
    Non-build items cannot be completed, so every required field is missing.
    """
    required = set(required_fields)
    if item.kind != EntityKind.BIKE_BUILD:
        return required

    missing = set()
    for name in required:
        if name == MECHANIC_NAME_FIELD:
            if actor is None:
                missing.add(name)
            continue
        value = collected_fields.get(name)
        if value is None or not str(value).strip():
            missing.add(name)
    return missing


def can_complete(
    item: WorkItem,
    collected_fields: Mapping[str, str | None],
    required_fields: Iterable[str],
    actor: Actor | None = None,
) -> bool:
    """Completion guard: every required field is present in ``collected_fields``.

    ``required_fields`` comes from the workshop's completion policy and is
    compared as a set, so its order does not matter.
    """
    if item.kind != EntityKind.BIKE_BUILD:
        return False
    return not missing_completion_fields(item, collected_fields, required_fields, actor)


def transition(
    item: WorkItem,
    to_status: str,
    actor: Actor | None = None,
    *,
    now: datetime | None = None,
    required_fields: Iterable[str] = (),
    collected_fields: Mapping[str, str | None] | None = None,
    pickup_code: str | None = None,
) -> TransitionOutcome:
    """Move ``item`` to ``to_status`` and build the status_change event.

    Args:
        item: Current work item (not modified)
        to_status: Target status
        actor: Employee causing the change (None for system changes)
        now: Current time (for deterministic testing)
        required_fields: Completion policy, checked when a build becomes assembled
        collected_fields: Values supplied for the completion policy
        pickup_code: Pickup code for leasing orders being picked up

    Returns:
        TransitionOutcome with the updated item and exactly one StatusChangeEvent

    Raises:
        UnknownStatusError: to_status is not in the kind's enumeration
        InvalidTransitionError: the adjacency table does not allow the change
        IncompleteDataError: a guard (completion policy, leasing pickup code) failed
    """
    now = now or datetime.now(UTC)
    target = require_status(item.kind, to_status)

    check = check_transition(item.kind, item.status, target)
    if not check.allowed:
        raise InvalidTransitionError(item.kind.value, item.status, target, check.reason)

    updates: dict = {"status": target, "updated_at": now}
    payload: dict = {"old_status": item.status, "new_status": target}

    if item.kind == EntityKind.BIKE_BUILD and target == BuildStatus.ASSEMBLED.value:
        missing = missing_completion_fields(item, collected_fields or {}, required_fields, actor)
        if missing:
            raise IncompleteDataError(missing)

    if item.kind == EntityKind.ORDER and target == OrderStatus.PICKED_UP.value and item.is_leasing:
        code = pickup_code or item.pickup_code
        if not code:
            raise IncompleteDataError({"pickup_code"}, "Leasing orders need a pickup code before pickup")
        updates["pickup_code"] = code
        payload["pickup_code"] = code

    # The employee sending an order to QC is recorded as its QC mechanic
    if item.kind == EntityKind.ORDER and target == OrderStatus.QC_PENDING.value and actor is not None:
        updates["qc_mechanic_id"] = actor.id
        if actor.id not in item.mechanic_ids:
            updates["mechanic_ids"] = item.mechanic_ids + (actor.id,)
        payload["qc_mechanic_id"] = actor.id

    if target == TRASH:
        updates["trashed_at"] = now
    elif item.status == TRASH:
        updates["trashed_at"] = None

    event = StatusChangeEvent(
        timestamp=now,
        actor=actor,
        payload=StatusChangePayload(**payload),
    )
    return TransitionOutcome(item=item.model_copy(update=updates), event=event)


def complete_build(
    item: WorkItem,
    collected_fields: Mapping[str, str | None],
    required_fields: Iterable[str],
    actor: Actor | None = None,
    *,
    now: datetime | None = None,
) -> CompletionOutcome:
    """Finish an assembly: validate collected bike data and move the build to assembled.

    Collected values are merged into the build's attributes. Who completed the
    build is carried by the completion event, never written into free text.

    Raises:
        InvalidTransitionError: item is not a build in progress
        IncompleteDataError: a required field is missing
    """
    now = now or datetime.now(UTC)
    if item.kind != EntityKind.BIKE_BUILD:
        raise InvalidTransitionError(
            item.kind.value,
            item.status,
            BuildStatus.ASSEMBLED.value,
            "Only bike builds can be completed",
        )

    outcome = transition(
        item,
        BuildStatus.ASSEMBLED.value,
        actor,
        now=now,
        required_fields=required_fields,
        collected_fields=collected_fields,
    )

    fields = {
        name: str(value).strip()
        for name, value in collected_fields.items()
        if name != MECHANIC_NAME_FIELD and value is not None and str(value).strip()
    }
    completed = outcome.item.model_copy(update={"attributes": {**item.attributes, **fields}})
    completion = CompletionEvent(
        timestamp=now,
        actor=actor,
        payload=CompletionPayload(fields=fields, completed_by=actor),
    )
    return CompletionOutcome(item=completed, events=(outcome.event, completion))


def is_purge_due(item: WorkItem, now: datetime, retention_days: int) -> bool:
    """True once a trashed item has sat in the trash for the full retention window."""
    if item.status != TRASH or item.trashed_at is None:
        return False
    return as_utc(now) - as_utc(item.trashed_at) >= timedelta(days=retention_days)


def purge(item: WorkItem, now: datetime, retention_days: int) -> TransitionOutcome:
    """Move a trashed item to the terminal ``purged`` state.

    Raises:
        InvalidTransitionError: item is not in the trash, or the retention
            window has not elapsed yet
    """
    if item.status != TRASH:
        raise InvalidTransitionError(item.kind.value, item.status, PURGED, "Only trashed items can be purged")
    if not is_purge_due(item, now, retention_days):
        raise InvalidTransitionError(
            item.kind.value,
            item.status,
            PURGED,
            f"Items stay in the trash for {retention_days} days before purge",
        )

    event = PurgeEvent(
        timestamp=now,
        payload=PurgePayload(trashed_at=item.trashed_at, retention_days=retention_days),
    )
    return TransitionOutcome(item=item.model_copy(update={"status": PURGED, "updated_at": now}), event=event)

"""Typed history events for orders and bike builds.

Each event kind is its own pydantic model with a ``kind`` literal; ``Event``
is the discriminated union over all of them. Events are frozen once built.
"""

import uuid
from datetime import UTC, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class Actor(BaseModel):
    """Reference to the person who caused an event (supplied by the identity collaborator)."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str = ""


class _EventBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | None = None
    sequence: int | None = None  # Append position, assigned by the log
    timestamp: datetime | None = None
    actor: Actor | None = None


class CreationPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str
    title: str = ""


class CreationEvent(_EventBase):
    kind: Literal["creation"] = "creation"
    payload: CreationPayload


class StatusChangePayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    old_status: str
    new_status: str
    pickup_code: str | None = None
    qc_mechanic_id: str | None = None


class StatusChangeEvent(_EventBase):
    kind: Literal["status_change"] = "status_change"
    payload: StatusChangePayload


class AssignmentPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    employee: Actor
    role: Literal["mechanic", "qc"] = "mechanic"
    removed: bool = False


class AssignmentEvent(_EventBase):
    kind: Literal["assignment"] = "assignment"
    payload: AssignmentPayload


class NotePayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str


class NoteEvent(_EventBase):
    kind: Literal["note"] = "note"
    payload: NotePayload


class ChecklistUpdatePayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    item: str
    completed: bool
    completed_count: int = 0
    total_count: int = 0


class ChecklistUpdateEvent(_EventBase):
    kind: Literal["checklist_update"] = "checklist_update"
    payload: ChecklistUpdatePayload


class CompletionPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    fields: dict[str, str] = Field(default_factory=dict)
    completed_by: Actor | None = None


class CompletionEvent(_EventBase):
    kind: Literal["completion"] = "completion"
    payload: CompletionPayload


class ScheduleChangePayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    old_due_date: datetime | None = None
    new_due_date: datetime | None = None


class ScheduleChangeEvent(_EventBase):
    kind: Literal["schedule_change"] = "schedule_change"
    payload: ScheduleChangePayload


class PurgePayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    trashed_at: datetime | None = None
    retention_days: int


class PurgeEvent(_EventBase):
    kind: Literal["purge"] = "purge"
    payload: PurgePayload


Event = Annotated[
    CreationEvent
    | StatusChangeEvent
    | AssignmentEvent
    | NoteEvent
    | ChecklistUpdateEvent
    | CompletionEvent
    | ScheduleChangeEvent
    | PurgeEvent,
    Field(discriminator="kind"),
]

EVENT_ADAPTER: TypeAdapter[Event] = TypeAdapter(Event)

# Kinds that record a change to the entity record itself
LIFECYCLE_EVENT_KINDS: frozenset[str] = frozenset({"creation", "status_change", "completion", "purge"})


def event_to_json(event: Event) -> str:
    return event.model_dump_json()


def event_from_json(raw: str | bytes) -> Event:
    return EVENT_ADAPTER.validate_json(raw)


def as_utc(value: datetime) -> datetime:
    """Normalize to UTC; naive datetimes are read as UTC everywhere in the domain."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def stamp_events(
    events: list[Event],
    previous: Event | None,
    next_sequence: int,
    now: datetime | None = None,
) -> list[Event]:
    """Assign id, sequence and timestamp to events about to be appended.

    Ordering is defined by append position, not by wall clock: a supplied
    timestamp earlier than the previous event is clamped to it so timestamps
    never decrease along the sequence.

    Args:
        events: Events in the order they will be appended
        previous: Last event already in the history (None for an empty history)
        next_sequence: Sequence number of the first new event
        now: Current time (for deterministic testing)

    Returns:
        New event instances; inputs are not modified
    """
    now = now or datetime.now(UTC)
    floor = as_utc(previous.timestamp) if previous is not None and previous.timestamp else None

    stamped: list[Event] = []
    for offset, event in enumerate(events):
        timestamp = as_utc(event.timestamp or now)
        if floor is not None and timestamp < floor:
            timestamp = floor
        stamped_event = event.model_copy(
            update={
                "id": event.id or str(uuid.uuid4()),
                "sequence": next_sequence + offset,
                "timestamp": timestamp,
            }
        )
        stamped.append(stamped_event)
        floor = timestamp

    return stamped

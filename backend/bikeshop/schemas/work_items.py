"""Pydantic schemas for work item requests and responses."""

from datetime import datetime
from typing import Literal

from pydantic import AwareDatetime, BaseModel, Field, field_validator

from bikeshop.domain.events import Actor, Event
from bikeshop.domain.status_machine import BUILD_DATA_FIELDS
from bikeshop.domain.statuses import STATUS_LABELS, EntityKind, allowed_targets
from bikeshop.domain.work_items import WorkItem


class CreateWorkItemRequest(BaseModel):
    """Create an order or bike build."""

    kind: EntityKind
    title: str = ""
    due_date: AwareDatetime | None = None
    attributes: dict[str, str] = Field(default_factory=dict)
    is_leasing: bool = False
    checklist: list[str] = Field(default_factory=list)
    actor: Actor | None = None


class TransitionRequest(BaseModel):
    """Request a status change."""

    to_status: str
    actor: Actor | None = None
    pickup_code: str | None = None
    expected_version: int | None = Field(None, description="Version the client last saw; stale versions get 409")


class CompletionRequest(BaseModel):
    """Finish a bike build with the collected bike data."""

    fields: dict[str, str | None] = Field(default_factory=dict)
    actor: Actor | None = None
    expected_version: int | None = None


class NoteRequest(BaseModel):
    text: str = Field(..., min_length=1)
    actor: Actor | None = None


class AssignmentRequest(BaseModel):
    employee: Actor
    role: Literal["mechanic", "qc"] = "mechanic"
    removed: bool = False
    actor: Actor | None = None


class ChecklistRequest(BaseModel):
    entry: str
    completed: bool
    actor: Actor | None = None


class DueDateRequest(BaseModel):
    due_date: AwareDatetime | None = None
    actor: Actor | None = None


class CompletionFieldsRequest(BaseModel):
    fields: list[str] = Field(default_factory=list)

    @field_validator("fields")
    @classmethod
    def known_fields(cls, value: list[str]) -> list[str]:
        unknown = sorted(set(value) - set(BUILD_DATA_FIELDS))
        if unknown:
            raise ValueError(f"Unknown bike data fields: {', '.join(unknown)}")
        return value


class CompletionFieldsResponse(BaseModel):
    workshop_id: str
    fields: list[str] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict)


class WorkItemResponse(BaseModel):
    """Work item with history and the statuses reachable next."""

    id: str
    kind: str
    workshop_id: str
    status: str
    status_label: str
    title: str = ""
    due_date: datetime | None = None
    version: int
    attributes: dict[str, str] = Field(default_factory=dict)
    is_leasing: bool = False
    pickup_code: str | None = None
    mechanic_ids: list[str] = Field(default_factory=list)
    qc_mechanic_id: str | None = None
    checklist: dict[str, bool] = Field(default_factory=dict)
    trashed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    next_statuses: list[str] = Field(default_factory=list)
    history: list[Event] = Field(default_factory=list)

    @classmethod
    def from_item(cls, item: WorkItem) -> "WorkItemResponse":
        return cls(
            id=item.id,
            kind=item.kind.value,
            workshop_id=item.workshop_id,
            status=item.status,
            status_label=STATUS_LABELS.get(item.status, item.status),
            title=item.title,
            due_date=item.due_date,
            version=item.version,
            attributes=item.attributes,
            is_leasing=item.is_leasing,
            pickup_code=item.pickup_code,
            mechanic_ids=list(item.mechanic_ids),
            qc_mechanic_id=item.qc_mechanic_id,
            checklist=item.checklist,
            trashed_at=item.trashed_at,
            created_at=item.created_at,
            updated_at=item.updated_at,
            next_statuses=sorted(allowed_targets(item.kind, item.status)),
            history=list(item.history),
        )


class HistoryResponse(BaseModel):
    """Item history, oldest first. ``events`` is never null."""

    item_id: str
    events: list[Event] = Field(default_factory=list)


class SweepResponse(BaseModel):
    workshop_id: str
    purged_ids: list[str] = Field(default_factory=list)
    retention_days: int

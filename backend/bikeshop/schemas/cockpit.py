"""Pydantic schemas for cockpit API responses."""

from datetime import datetime

from pydantic import BaseModel, Field


class UrgencyResponse(BaseModel):
    """Urgency tier and display metadata for one item."""

    tier: str = Field(..., description="overdue, due_today, due_tomorrow, upcoming, far_future or none")
    label: str
    short_label: str
    tone: str = Field(..., description="Semantic color name for the badge")
    icon: str
    is_overdue: bool = False
    is_due_today: bool = False
    is_urgent: bool = False
    days_until: int | None = None


class CockpitItem(BaseModel):
    """Work item row in the cockpit list."""

    id: str
    kind: str
    title: str = ""
    status: str
    status_label: str
    due_date: datetime | None = None
    mechanic_ids: list[str] = Field(default_factory=list)
    urgency: UrgencyResponse


class CockpitResponse(BaseModel):
    """Cockpit payload: badge counts for every tab plus the selected tab's items.

    ``counts`` always has every tab key; ``items`` defaults to an empty array.
    """

    workshop_id: str
    tier: str = Field(..., description="Selected tab (all, overdue, today, urgent, upcoming)")
    generated_at: datetime
    counts: dict[str, int] = Field(default_factory=dict)
    items: list[CockpitItem] = Field(default_factory=list)

"""Urgency classification for due dates.

Pure function of ``(due_date, now)``: callers pass one snapshot of "now" and
get the same answer every time. "Today" is a calendar-day comparison in the
workshop's time zone, not a rolling 24-hour window; hour and day distances
are elapsed time, so a DST switch does not shift them.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from enum import Enum

from bikeshop.domain.events import as_utc


class UrgencyTier(str, Enum):
    """Urgency buckets derived from a due date. Never persisted."""

    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    DUE_TOMORROW = "due_tomorrow"
    UPCOMING = "upcoming"
    FAR_FUTURE = "far_future"
    NONE = "none"


@dataclass(frozen=True)
class UrgencyInfo:
    """Tier plus display metadata for badges and list rows.

    ``tone`` and ``icon`` are semantic names; mapping them to colors and
    glyphs is up to the presentation layer.
    """

    tier: UrgencyTier
    label: str
    short_label: str
    tone: str
    icon: str
    is_overdue: bool = False
    is_due_today: bool = False
    is_urgent: bool = False
    days_until: int | None = None


DEFAULT_UPCOMING_DAYS = 3


def _in_zone(value: datetime, zone: tzinfo) -> datetime:
    return as_utc(value).astimezone(zone)


def classify(
    due_date: datetime | None,
    now: datetime,
    tz: tzinfo | None = None,
    upcoming_days: int = DEFAULT_UPCOMING_DAYS,
) -> UrgencyInfo:
    """Classify a due date relative to ``now``.

    Args:
        due_date: Deadline, or None for "no deadline"
        now: Single snapshot of the current time used for every comparison
        tz: Zone that defines calendar days (defaults to now's zone, else UTC).
            Naive datetimes are read as UTC, like everywhere else in the domain.
        upcoming_days: Upper bound (inclusive) of the upcoming window in days

    Returns:
        UrgencyInfo with tier, labels and predicates

    Rules, first match wins:
        - no due date -> none
        - in the past and not today -> overdue
        - same calendar day as now -> due_today
        - less than 24 full hours away -> due_tomorrow
        - at most ``upcoming_days`` full days away -> upcoming
        - otherwise -> far_future
    """
    if due_date is None:
        return UrgencyInfo(
            tier=UrgencyTier.NONE,
            label="No date",
            short_label="-",
            tone="slate",
            icon="calendar",
        )

    zone = tz or now.tzinfo or UTC
    now_local = _in_zone(now, zone)
    due_local = _in_zone(due_date, zone)

    due_today = due_local.date() == now_local.date()

    if as_utc(due_date) < as_utc(now) and not due_today:
        return UrgencyInfo(
            tier=UrgencyTier.OVERDUE,
            label="Overdue",
            short_label="!",
            tone="red",
            icon="alert-triangle",
            is_overdue=True,
            is_urgent=True,
            days_until=(due_local.date() - now_local.date()).days,
        )

    if due_today:
        return UrgencyInfo(
            tier=UrgencyTier.DUE_TODAY,
            label="Due today",
            short_label="Today",
            tone="amber",
            icon="alert-triangle",
            is_due_today=True,
            is_urgent=True,
            days_until=0,
        )

    # From here on the due date lies after now on a later calendar day.
    remaining = as_utc(due_date) - as_utc(now)
    hours_until = int(remaining.total_seconds() // 3600)
    days_until = remaining.days

    if 0 <= hours_until < 24:
        return UrgencyInfo(
            tier=UrgencyTier.DUE_TOMORROW,
            label="Due tomorrow",
            short_label="Tomorrow",
            tone="orange",
            icon="clock",
            is_urgent=True,
            days_until=days_until,
        )

    if 0 <= days_until <= upcoming_days:
        return UrgencyInfo(
            tier=UrgencyTier.UPCOMING,
            label=f"In {days_until} days",
            short_label=f"{days_until}d",
            tone="blue",
            icon="clock",
            days_until=days_until,
        )

    return UrgencyInfo(
        tier=UrgencyTier.FAR_FUTURE,
        label=due_local.strftime("%d %b"),
        short_label=due_local.strftime("%d.%m."),
        tone="purple",
        icon="shield-check",
        days_until=days_until,
    )

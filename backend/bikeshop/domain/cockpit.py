"""Cockpit aggregation: sort, filter and count work items by urgency.

Pure functions over any items exposing ``due_date``. Every function takes the
same ``now`` snapshot so counts and filtered lists always agree.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime, tzinfo
from enum import Enum
from typing import Protocol, TypeVar

from bikeshop.domain.events import as_utc
from bikeshop.domain.statuses import FINISHED_STATUSES, PURGED, TRASH, EntityKind
from bikeshop.domain.urgency import DEFAULT_UPCOMING_DAYS, UrgencyInfo, classify


class Schedulable(Protocol):
    due_date: datetime | None


T = TypeVar("T", bound=Schedulable)


class TierFilter(str, Enum):
    """Cockpit filter tabs."""

    ALL = "all"
    OVERDUE = "overdue"
    TODAY = "today"
    URGENT = "urgent"
    UPCOMING = "upcoming"


def matches_filter(info: UrgencyInfo, has_due_date: bool, tier: TierFilter | str) -> bool:
    """Whether an item with urgency ``info`` belongs under the ``tier`` tab."""
    tier = TierFilter(tier)
    if tier == TierFilter.ALL:
        return True
    if tier == TierFilter.OVERDUE:
        return info.is_overdue
    if tier == TierFilter.TODAY:
        return info.is_due_today
    if tier == TierFilter.URGENT:
        return info.is_urgent
    # Upcoming: dated items that are neither overdue, due today nor urgent
    return has_due_date and not (info.is_overdue or info.is_due_today or info.is_urgent)


def classify_and_sort(
    items: Iterable[T],
    now: datetime,
    tz: tzinfo | None = None,
    upcoming_days: int = DEFAULT_UPCOMING_DAYS,
) -> list[tuple[T, UrgencyInfo]]:
    """Classify every item and order them for display.

    Overdue items come first, then ascending by due date; items without a
    due date go last. Ties keep their input order.
    """
    classified = [(item, classify(item.due_date, now, tz, upcoming_days)) for item in items]

    def sort_key(pair: tuple[T, UrgencyInfo]) -> tuple[bool, bool, float]:
        item, info = pair
        if item.due_date is None:
            return (True, True, 0.0)
        return (not info.is_overdue, False, as_utc(item.due_date).timestamp())

    return sorted(classified, key=sort_key)


def filter_by_tier(
    items: Iterable[T],
    tier: TierFilter | str,
    now: datetime,
    tz: tzinfo | None = None,
    upcoming_days: int = DEFAULT_UPCOMING_DAYS,
) -> list[T]:
    """Items that belong under the ``tier`` tab, in input order."""
    tier = TierFilter(tier)
    return [
        item
        for item in items
        if matches_filter(classify(item.due_date, now, tz, upcoming_days), item.due_date is not None, tier)
    ]


def counts_by_tier(
    items: Iterable[T],
    now: datetime,
    tz: tzinfo | None = None,
    upcoming_days: int = DEFAULT_UPCOMING_DAYS,
) -> dict[str, int]:
    """Badge counts per cockpit tab; each equals ``len(filter_by_tier(...))``."""
    counts = {tier.value: 0 for tier in TierFilter}
    for item in items:
        info = classify(item.due_date, now, tz, upcoming_days)
        for tier in TierFilter:
            if matches_filter(info, item.due_date is not None, tier):
                counts[tier.value] += 1
    return counts


def active_only(items: Sequence) -> list:
    """Drop trashed, purged and finished items from a working view."""
    return [
        item
        for item in items
        if item.status not in (TRASH, PURGED)
        and item.status not in FINISHED_STATUSES[EntityKind(item.kind)]
    ]

"""Tests for due-date urgency classification."""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest

from bikeshop.domain.urgency import UrgencyTier, classify

pytestmark = pytest.mark.unit

BERLIN = ZoneInfo("Europe/Berlin")


def _berlin(*args):
    return datetime(*args, tzinfo=BERLIN)


def test_yesterday_is_overdue():
    info = classify(_berlin(2024, 6, 11, 10, 0), _berlin(2024, 6, 12, 9, 0))

    assert info.tier == UrgencyTier.OVERDUE
    assert info.is_overdue
    assert info.is_urgent
    assert info.days_until == -1


def test_late_today_is_due_today_not_overdue():
    info = classify(_berlin(2024, 6, 12, 23, 59), _berlin(2024, 6, 12, 0, 1))

    assert info.tier == UrgencyTier.DUE_TODAY
    assert info.is_due_today
    assert not info.is_overdue
    assert info.is_urgent
    assert info.days_until == 0


def test_earlier_today_is_still_due_today():
    info = classify(_berlin(2024, 6, 12, 8, 0), _berlin(2024, 6, 12, 17, 0))

    assert info.tier == UrgencyTier.DUE_TODAY
    assert not info.is_overdue


def test_within_24_hours_on_next_day_is_due_tomorrow():
    info = classify(_berlin(2024, 6, 13, 8, 0), _berlin(2024, 6, 12, 12, 0))

    assert info.tier == UrgencyTier.DUE_TOMORROW
    assert info.is_urgent
    assert not info.is_due_today
    assert info.short_label == "Tomorrow"


def test_two_days_out_is_upcoming():
    info = classify(_berlin(2024, 6, 14, 12, 0), _berlin(2024, 6, 12, 12, 0))

    assert info.tier == UrgencyTier.UPCOMING
    assert not info.is_urgent
    assert info.days_until == 2
    assert info.label == "In 2 days"
    assert info.short_label == "2d"


def test_upcoming_window_is_inclusive():
    info = classify(_berlin(2024, 6, 15, 23, 0), _berlin(2024, 6, 12, 12, 0))

    assert info.tier == UrgencyTier.UPCOMING
    assert info.days_until == 3


def test_beyond_window_is_far_future():
    info = classify(_berlin(2024, 6, 22, 12, 0), _berlin(2024, 6, 12, 12, 0))

    assert info.tier == UrgencyTier.FAR_FUTURE
    assert not info.is_urgent
    assert info.label == "22 Jun"
    assert info.short_label == "22.06."
    assert info.days_until == 10


def test_upcoming_window_is_configurable():
    due, now = _berlin(2024, 6, 17, 12, 0), _berlin(2024, 6, 12, 12, 0)

    assert classify(due, now).tier == UrgencyTier.FAR_FUTURE
    assert classify(due, now, upcoming_days=7).tier == UrgencyTier.UPCOMING


def test_no_due_date_is_none_regardless_of_now():
    for now in (
        datetime(1999, 12, 31, 23, 59, tzinfo=UTC),
        datetime(2024, 6, 12, 10, 0, tzinfo=UTC),
        datetime(2099, 1, 1, tzinfo=BERLIN),
    ):
        info = classify(None, now)
        assert info.tier == UrgencyTier.NONE
        assert not info.is_urgent
        assert info.days_until is None


def test_classification_is_deterministic():
    due, now = _berlin(2024, 6, 13, 9, 0), _berlin(2024, 6, 12, 18, 0)
    assert classify(due, now, BERLIN) == classify(due, now, BERLIN)


def test_calendar_day_is_decided_in_workshop_zone():
    """23:30 UTC on the 12th is already the 13th in Berlin."""
    due = datetime(2024, 6, 12, 23, 30, tzinfo=UTC)
    now = datetime(2024, 6, 12, 10, 0, tzinfo=UTC)

    assert classify(due, now, UTC).tier == UrgencyTier.DUE_TODAY
    assert classify(due, now, BERLIN).tier == UrgencyTier.DUE_TOMORROW


def test_naive_datetimes_are_read_as_utc():
    due = datetime(2024, 6, 12, 22, 30)  # 00:30 on the 13th in Berlin
    now = datetime(2024, 6, 12, 22, 0, tzinfo=UTC)  # 00:00 on the 13th in Berlin

    info = classify(due, now, BERLIN)

    assert info.tier == UrgencyTier.DUE_TODAY
    assert classify(due, now, BERLIN) == classify(due.replace(tzinfo=UTC), now, BERLIN)


def test_naive_now_is_read_as_utc():
    due = datetime(2024, 6, 14, 12, 0, tzinfo=UTC)
    now = datetime(2024, 6, 12, 12, 0)

    assert classify(due, now, UTC).days_until == 2


def test_hours_until_across_spring_forward_use_elapsed_time():
    """Clocks skip 02:00 to 03:00 on 31 March, so 21:30 to 22:00 the next day is 23.5 hours."""
    info = classify(_berlin(2024, 3, 31, 22, 0), _berlin(2024, 3, 30, 21, 30), BERLIN)

    assert info.tier == UrgencyTier.DUE_TOMORROW
    assert info.days_until == 0


def test_hours_until_across_fall_back_use_elapsed_time():
    """Clocks repeat 02:00 to 03:00 on 27 October, so 22:30 to 22:00 the next day is 24.5 hours."""
    info = classify(_berlin(2024, 10, 27, 22, 0), _berlin(2024, 10, 26, 22, 30), BERLIN)

    assert info.tier == UrgencyTier.UPCOMING
    assert info.days_until == 1

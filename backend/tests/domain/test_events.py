"""Tests for typed history events and append stamping."""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from bikeshop.domain.events import (
    Actor,
    CompletionEvent,
    CompletionPayload,
    NoteEvent,
    NotePayload,
    StatusChangeEvent,
    StatusChangePayload,
    as_utc,
    event_from_json,
    event_to_json,
    stamp_events,
)

pytestmark = pytest.mark.unit


def _note(text, timestamp=None):
    return NoteEvent(timestamp=timestamp, payload=NotePayload(text=text))


def test_event_json_restores_concrete_type():
    event = StatusChangeEvent(
        id="evt-1",
        sequence=3,
        timestamp=datetime(2024, 6, 12, 8, 0, tzinfo=UTC),
        actor=Actor(id="emp-1", display_name="Anna"),
        payload=StatusChangePayload(old_status="received", new_status="in_progress"),
    )

    restored = event_from_json(event_to_json(event))

    assert isinstance(restored, StatusChangeEvent)
    assert restored == event


def test_completion_event_carries_actor_structurally():
    actor = Actor(id="emp-2", display_name="Ben")
    event = CompletionEvent(actor=actor, payload=CompletionPayload(fields={"brand": "Cube"}, completed_by=actor))

    restored = event_from_json(event_to_json(event))

    assert isinstance(restored, CompletionEvent)
    assert restored.payload.completed_by == actor


def test_unknown_event_kind_is_rejected():
    with pytest.raises(ValidationError):
        event_from_json('{"kind": "teleport", "payload": {}}')


def test_events_are_frozen():
    event = _note("hi")
    with pytest.raises(ValidationError):
        event.sequence = 5


def test_stamp_assigns_ids_and_consecutive_sequences():
    now = datetime(2024, 6, 12, 8, 0, tzinfo=UTC)

    stamped = stamp_events([_note("a"), _note("b")], None, 0, now)

    assert [e.sequence for e in stamped] == [0, 1]
    assert all(e.id for e in stamped)
    assert stamped[0].id != stamped[1].id
    assert all(e.timestamp == now for e in stamped)


def test_stamp_keeps_existing_id():
    event = NoteEvent(id="keep-me", payload=NotePayload(text="x"))
    assert stamp_events([event], None, 0)[0].id == "keep-me"


def test_stamp_does_not_modify_inputs():
    event = _note("a")
    stamp_events([event], None, 4)
    assert event.id is None
    assert event.sequence is None


def test_skewed_client_clock_is_clamped_to_previous_event():
    previous = _note("first", datetime(2024, 6, 12, 12, 0, tzinfo=UTC))
    skewed = _note("second", datetime(2024, 6, 12, 11, 0, tzinfo=UTC))

    [stamped] = stamp_events([skewed], previous, 1)

    assert stamped.sequence == 1
    assert stamped.timestamp == previous.timestamp


def test_timestamps_never_decrease_within_a_batch():
    events = [
        _note("a", datetime(2024, 6, 12, 12, 0, tzinfo=UTC)),
        _note("b", datetime(2024, 6, 12, 9, 0, tzinfo=UTC)),
        _note("c", datetime(2024, 6, 12, 13, 0, tzinfo=UTC)),
    ]

    stamped = stamp_events(events, None, 0)
    timestamps = [e.timestamp for e in stamped]

    assert timestamps == sorted(timestamps)
    assert timestamps[2] == datetime(2024, 6, 12, 13, 0, tzinfo=UTC)


def test_stamp_normalizes_to_utc():
    berlin_summer = timezone(timedelta(hours=2))
    [stamped] = stamp_events([_note("a", datetime(2024, 6, 12, 14, 0, tzinfo=berlin_summer))], None, 0)
    assert stamped.timestamp == datetime(2024, 6, 12, 12, 0, tzinfo=UTC)
    assert stamped.timestamp.utcoffset() == timedelta(0)


def test_as_utc_treats_naive_as_utc():
    assert as_utc(datetime(2024, 1, 1, 12, 0)) == datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

"""Tests for notes, assignments, checklist ticks and rescheduling."""

from datetime import UTC, datetime

import pytest

from bikeshop.core.exceptions import NotFoundError
from bikeshop.domain.activity import add_note, assign, reschedule, update_checklist
from bikeshop.domain.events import Actor

pytestmark = pytest.mark.unit


def test_add_note(order, mechanic, now):
    updated, event = add_note(order, "Customer called", mechanic, now=now)

    assert event.kind == "note"
    assert event.payload.text == "Customer called"
    assert event.actor == mechanic
    assert updated.updated_at == now
    assert updated.status == order.status


def test_assign_mechanic_is_idempotent(order, mechanic, now):
    once, _ = assign(order, mechanic, now=now)
    twice, event = assign(once, mechanic, now=now)

    assert twice.mechanic_ids == ("emp-anna",)
    assert event.payload.role == "mechanic"
    assert not event.payload.removed


def test_unassign_mechanic(order, mechanic, qc_mechanic, now):
    item = order.model_copy(update={"mechanic_ids": ("emp-anna", "emp-ben")})

    updated, event = assign(item, mechanic, qc_mechanic, removed=True, now=now)

    assert updated.mechanic_ids == ("emp-ben",)
    assert event.payload.removed
    assert event.actor == qc_mechanic


def test_assign_and_clear_qc(order, qc_mechanic, now):
    assigned, _ = assign(order, qc_mechanic, role="qc", now=now)
    assert assigned.qc_mechanic_id == "emp-ben"

    cleared, _ = assign(assigned, qc_mechanic, role="qc", removed=True, now=now)
    assert cleared.qc_mechanic_id is None


def test_removing_other_qc_keeps_current(order, now):
    item = order.model_copy(update={"qc_mechanic_id": "emp-ben"})

    updated, event = assign(item, Actor(id="emp-zoe"), role="qc", removed=True, now=now)

    assert updated.qc_mechanic_id == "emp-ben"
    assert event.payload.employee.id == "emp-zoe"


def test_checklist_tick_reports_progress(order, now):
    item = order.model_copy(update={"checklist": {"brakes": False, "gears": False, "tyres": True}})

    updated, event = update_checklist(item, "brakes", True, now=now)

    assert updated.checklist == {"brakes": True, "gears": False, "tyres": True}
    assert event.payload.item == "brakes"
    assert event.payload.completed
    assert event.payload.completed_count == 2
    assert event.payload.total_count == 3


def test_checklist_unknown_entry(order, now):
    with pytest.raises(NotFoundError) as exc_info:
        update_checklist(order, "warp drive", True, now=now)

    assert exc_info.value.context["entity_type"] == "checklist entry"


def test_reschedule_records_old_and_new(order, now):
    first = datetime(2024, 6, 14, 16, 0, tzinfo=UTC)
    second = datetime(2024, 6, 15, 16, 0, tzinfo=UTC)

    scheduled, _ = reschedule(order, first, now=now)
    moved, event = reschedule(scheduled, second, now=now)

    assert moved.due_date == second
    assert event.payload.old_due_date == first
    assert event.payload.new_due_date == second


def test_clear_due_date(order, now):
    item = order.model_copy(update={"due_date": now})
    updated, event = reschedule(item, None, now=now)

    assert updated.due_date is None
    assert event.payload.new_due_date is None


@pytest.mark.parametrize(
    "call",
    [
        lambda item, now: add_note(item, "x", now=now),
        lambda item, now: assign(item, Actor(id="e"), now=now),
        lambda item, now: reschedule(item, None, now=now),
    ],
    ids=["note", "assign", "reschedule"],
)
def test_purged_items_reject_activity(order, now, call):
    with pytest.raises(NotFoundError):
        call(order.model_copy(update={"status": "purged"}), now)

"""Tests for status enumerations and adjacency tables."""

import pytest

from bikeshop.core.exceptions import UnknownStatusError
from bikeshop.domain.statuses import (
    FINISHED_STATUSES,
    INITIAL_STATUS,
    STATUS_LABELS,
    TRANSITIONS,
    BuildStatus,
    EntityKind,
    OrderStatus,
    allowed_targets,
    is_valid_status,
    require_status,
    statuses_for,
)

pytestmark = pytest.mark.unit


def test_order_statuses_cover_enum():
    assert statuses_for(EntityKind.ORDER) == {s.value for s in OrderStatus}
    assert "purged" in statuses_for("order")


def test_build_statuses_cover_enum():
    assert statuses_for(EntityKind.BIKE_BUILD) == {s.value for s in BuildStatus}


def test_initial_statuses():
    assert INITIAL_STATUS[EntityKind.ORDER] == "received"
    assert INITIAL_STATUS[EntityKind.BIKE_BUILD] == "open"


def test_every_table_key_and_target_is_a_known_status():
    for kind, table in TRANSITIONS.items():
        known = statuses_for(kind)
        assert set(table) == known
        for targets in table.values():
            assert targets <= known


def test_purged_is_terminal_and_never_a_table_target():
    for kind, table in TRANSITIONS.items():
        assert table["purged"] == frozenset()
        assert all("purged" not in targets for targets in table.values())


def test_every_live_status_can_reach_trash():
    for kind, table in TRANSITIONS.items():
        for status, targets in table.items():
            if status in ("trash", "purged"):
                continue
            assert "trash" in targets, f"{kind.value}:{status} cannot be trashed"


def test_restore_targets_initial_status():
    assert allowed_targets(EntityKind.ORDER, "trash") == {"received"}
    assert allowed_targets(EntityKind.BIKE_BUILD, "trash") == {"open"}


def test_order_happy_path_edges():
    assert "in_progress" in allowed_targets("order", "received")
    assert "qc_pending" in allowed_targets("order", "in_progress")
    assert "ready_for_pickup" in allowed_targets("order", "qc_pending")
    assert "picked_up" in allowed_targets("order", "ready_for_pickup")
    assert "closed" in allowed_targets("order", "picked_up")


def test_allowed_targets_accepts_enum_members():
    assert allowed_targets(EntityKind.BIKE_BUILD, BuildStatus.ASSEMBLED) == {"in_progress", "inspected", "trash"}


def test_allowed_targets_unknown_status_is_empty():
    assert allowed_targets(EntityKind.ORDER, "teleported") == frozenset()


def test_statuses_are_kind_specific():
    assert is_valid_status(EntityKind.ORDER, "qc_pending")
    assert not is_valid_status(EntityKind.BIKE_BUILD, "qc_pending")
    assert not is_valid_status(EntityKind.ORDER, "assembled")


def test_require_status_raises_for_unknown_value():
    with pytest.raises(UnknownStatusError) as exc_info:
        require_status(EntityKind.BIKE_BUILD, "picked_up")

    assert exc_info.value.kind == "unknown_status"
    assert exc_info.value.context == {"entity_kind": "bike_build", "status": "picked_up"}


def test_require_status_returns_plain_string():
    value = require_status(EntityKind.ORDER, OrderStatus.CLOSED)
    assert value == "closed"
    assert type(value) is str


def test_finished_statuses():
    assert FINISHED_STATUSES[EntityKind.ORDER] == {"picked_up", "closed"}
    assert FINISHED_STATUSES[EntityKind.BIKE_BUILD] == {"inspected"}


def test_every_status_has_a_label():
    for kind in EntityKind:
        for status in statuses_for(kind):
            assert STATUS_LABELS[status]

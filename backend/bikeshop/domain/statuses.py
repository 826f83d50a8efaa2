"""Status enums and adjacency tables for orders and bike builds.

Pure domain logic with no external dependencies.
"""

from enum import Enum

from bikeshop.core.exceptions import UnknownStatusError


class EntityKind(str, Enum):
    """Kinds of work item tracked through a lifecycle."""

    ORDER = "order"
    BIKE_BUILD = "bike_build"


class OrderStatus(str, Enum):
    """Repair order lifecycle states."""

    RECEIVED = "received"
    AWAITING_PARTS = "awaiting_parts"
    IN_PROGRESS = "in_progress"
    QC_PENDING = "qc_pending"
    READY_FOR_PICKUP = "ready_for_pickup"
    PICKED_UP = "picked_up"
    CLOSED = "closed"
    TRASH = "trash"
    PURGED = "purged"  # Only reachable through the retention sweep


class BuildStatus(str, Enum):
    """Bike assembly build lifecycle states."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    ASSEMBLED = "assembled"
    INSPECTED = "inspected"
    TRASH = "trash"
    PURGED = "purged"  # Only reachable through the retention sweep


STATUS_ENUMS: dict[EntityKind, type[Enum]] = {
    EntityKind.ORDER: OrderStatus,
    EntityKind.BIKE_BUILD: BuildStatus,
}

INITIAL_STATUS: dict[EntityKind, str] = {
    EntityKind.ORDER: OrderStatus.RECEIVED.value,
    EntityKind.BIKE_BUILD: BuildStatus.OPEN.value,
}

# Closed world: any pair missing here is illegal.
ORDER_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.RECEIVED: frozenset({OrderStatus.AWAITING_PARTS, OrderStatus.IN_PROGRESS, OrderStatus.TRASH}),
    OrderStatus.AWAITING_PARTS: frozenset({OrderStatus.IN_PROGRESS, OrderStatus.TRASH}),
    OrderStatus.IN_PROGRESS: frozenset({OrderStatus.AWAITING_PARTS, OrderStatus.QC_PENDING, OrderStatus.TRASH}),
    OrderStatus.QC_PENDING: frozenset({OrderStatus.IN_PROGRESS, OrderStatus.READY_FOR_PICKUP, OrderStatus.TRASH}),
    OrderStatus.READY_FOR_PICKUP: frozenset({OrderStatus.PICKED_UP, OrderStatus.TRASH}),
    OrderStatus.PICKED_UP: frozenset({OrderStatus.CLOSED, OrderStatus.TRASH}),
    OrderStatus.CLOSED: frozenset({OrderStatus.RECEIVED, OrderStatus.TRASH}),  # reopen
    OrderStatus.TRASH: frozenset({OrderStatus.RECEIVED}),  # restore
    OrderStatus.PURGED: frozenset(),  # Terminal
}

BUILD_TRANSITIONS: dict[str, frozenset[str]] = {
    BuildStatus.OPEN: frozenset({BuildStatus.IN_PROGRESS, BuildStatus.TRASH}),
    BuildStatus.IN_PROGRESS: frozenset({BuildStatus.ASSEMBLED, BuildStatus.TRASH}),
    BuildStatus.ASSEMBLED: frozenset({BuildStatus.IN_PROGRESS, BuildStatus.INSPECTED, BuildStatus.TRASH}),
    BuildStatus.INSPECTED: frozenset({BuildStatus.TRASH}),
    BuildStatus.TRASH: frozenset({BuildStatus.OPEN}),  # restore
    BuildStatus.PURGED: frozenset(),  # Terminal
}

TRANSITIONS: dict[EntityKind, dict[str, frozenset[str]]] = {
    EntityKind.ORDER: {str(k.value): frozenset(s.value for s in v) for k, v in ORDER_TRANSITIONS.items()},
    EntityKind.BIKE_BUILD: {str(k.value): frozenset(s.value for s in v) for k, v in BUILD_TRANSITIONS.items()},
}

# Finished work drops out of the working cockpit but stays listed in archives.
FINISHED_STATUSES: dict[EntityKind, frozenset[str]] = {
    EntityKind.ORDER: frozenset({OrderStatus.PICKED_UP.value, OrderStatus.CLOSED.value}),
    EntityKind.BIKE_BUILD: frozenset({BuildStatus.INSPECTED.value}),
}

TRASH = "trash"
PURGED = "purged"

# Human-readable labels for UI badges and error messages
STATUS_LABELS: dict[str, str] = {
    "received": "Received",
    "awaiting_parts": "Awaiting parts",
    "in_progress": "In progress",
    "qc_pending": "Quality check pending",
    "ready_for_pickup": "Ready for pickup",
    "picked_up": "Picked up",
    "closed": "Closed",
    "open": "Open",
    "assembled": "Assembled",
    "inspected": "Inspected",
    "trash": "Trash",
    "purged": "Purged",
}


def statuses_for(kind: EntityKind | str) -> frozenset[str]:
    """Return every status value valid for an entity kind."""
    enum_cls = STATUS_ENUMS[EntityKind(kind)]
    return frozenset(member.value for member in enum_cls)


def is_valid_status(kind: EntityKind | str, status: str) -> bool:
    return status in statuses_for(kind)


def require_status(kind: EntityKind | str, status: str) -> str:
    """Return ``status`` as a plain string, raising if it is not in the enumeration."""
    value = status.value if isinstance(status, Enum) else status
    if not is_valid_status(kind, value):
        raise UnknownStatusError(EntityKind(kind).value, str(value))
    return value


def allowed_targets(kind: EntityKind | str, from_status: str) -> frozenset[str]:
    """Statuses reachable in one step from ``from_status`` (empty for unknown input)."""
    value = from_status.value if isinstance(from_status, Enum) else from_status
    return TRANSITIONS[EntityKind(kind)].get(value, frozenset())

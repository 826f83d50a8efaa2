"""Typed failures raised by the workflow core.

Every error carries a stable ``kind`` and structured ``context`` so the
presentation layer can pick its own wording. ``retryable`` marks the errors a
caller may retry verbatim (after re-reading the entity for version conflicts).
"""

from typing import Any


class WorkshopError(Exception):
    """Base exception for the bikeshop workflow core."""

    kind = "workshop_error"
    retryable = False

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "retryable": self.retryable,
            "context": self.context,
        }


class InvalidTransitionError(WorkshopError):
    """Raised when a status change is not in the adjacency table."""

    kind = "invalid_transition"

    def __init__(self, entity_kind: str, from_status: str, to_status: str, reason: str = ""):
        self.entity_kind = entity_kind
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            reason or f"Cannot move {entity_kind} from '{from_status}' to '{to_status}'",
            entity_kind=entity_kind,
            from_status=from_status,
            to_status=to_status,
        )


class UnknownStatusError(WorkshopError):
    """Raised when a status value is outside the entity kind's enumeration."""

    kind = "unknown_status"

    def __init__(self, entity_kind: str, status: str):
        self.entity_kind = entity_kind
        self.status = status
        super().__init__(
            f"'{status}' is not a valid status for {entity_kind}",
            entity_kind=entity_kind,
            status=status,
        )


class IncompleteDataError(WorkshopError):
    """Raised when a guarded transition is missing required data."""

    kind = "incomplete_data"

    def __init__(self, missing_fields: set[str] | frozenset[str], reason: str = ""):
        self.missing_fields = frozenset(missing_fields)
        missing = sorted(self.missing_fields)
        super().__init__(
            reason or f"Missing required fields: {', '.join(missing)}",
            missing_fields=missing,
        )


class NotFoundError(WorkshopError):
    """Raised when an entity or its history does not exist in the store."""

    kind = "not_found"

    def __init__(self, entity_id: str, entity_type: str = "work item"):
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type} with id '{entity_id}' not found",
            entity_id=entity_id,
            entity_type=entity_type,
        )


class DuplicateEntityError(WorkshopError):
    """Raised when creating an entity whose id already exists."""

    kind = "duplicate_entity"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"work item with id '{entity_id}' already exists", entity_id=entity_id)


class StoreUnavailableError(WorkshopError):
    """Raised when the durable store fails or times out."""

    kind = "store_unavailable"
    retryable = True

    def __init__(self, operation: str, cause: str = ""):
        self.operation = operation
        super().__init__(
            f"Store unavailable during {operation}" + (f": {cause}" if cause else ""),
            operation=operation,
        )


class ConcurrentModificationError(WorkshopError):
    """Raised when another writer committed first (optimistic version check)."""

    kind = "concurrent_modification"
    retryable = True

    def __init__(self, entity_id: str, expected_version: int | None = None, actual_version: int | None = None):
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"work item '{entity_id}' was modified concurrently",
            entity_id=entity_id,
            expected_version=expected_version,
            actual_version=actual_version,
        )


class InvalidEventError(WorkshopError):
    """Raised when an event kind cannot be appended on its own.

    Lifecycle events change the entity record and only enter the history
    together with that change.
    """

    kind = "invalid_event"

    def __init__(self, entity_id: str, event_kind: str):
        self.entity_id = entity_id
        self.event_kind = event_kind
        super().__init__(
            f"'{event_kind}' events are recorded with their status change, not appended directly",
            entity_id=entity_id,
            event_kind=event_kind,
        )

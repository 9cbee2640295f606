"""
Exceptions for the coordination engine.

Every rejected mutation raises one of these from inside the service's
transaction.atomic() block, so the whole transaction rolls back. Each
exception carries a stable ``code`` for API clients and an HTTP status the
API layer maps it to.
"""

from collections.abc import Iterable
from typing import Any


class EngineError(Exception):
    """Base exception for all engine rejections."""

    code = "engine_error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(EngineError):
    """Referenced entity does not exist."""

    code = "not_found"
    status_code = 404


class ForbiddenError(EngineError):
    """Actor is not allowed to perform the operation."""

    code = "forbidden"
    status_code = 403


class InvalidTransitionError(EngineError):
    """Requested status change is not in the transition table."""

    code = "invalid_transition"
    status_code = 409

    def __init__(
        self,
        entity: str,
        current: str,
        requested: str,
        allowed: Iterable[str],
    ) -> None:
        self.entity = entity
        self.current = current
        self.requested = requested
        self.allowed = sorted(allowed)
        valid = ", ".join(self.allowed) if self.allowed else "none"
        super().__init__(
            f"Cannot transition {entity} from {current} to {requested}. "
            f"Valid transitions: {valid}"
        )


class CapacityExceededError(EngineError):
    """Container is full, or a limit would drop below current occupancy."""

    code = "capacity_exceeded"
    status_code = 409

    def __init__(self, container: str, occupancy: int, limit: int, message: str | None = None) -> None:
        self.container = container
        self.occupancy = occupancy
        self.limit = limit
        super().__init__(
            message or f"{container} is at capacity ({occupancy} of {limit})"
        )


class ConstraintViolationError(EngineError):
    """Referential mismatch or uniqueness violation."""

    code = "constraint_violation"
    status_code = 409


class EventClosedError(EngineError):
    """Event is finished or cancelled and no longer accepts content changes."""

    code = "event_closed"
    status_code = 409

    def __init__(self, event_status: str, message: str | None = None) -> None:
        self.event_status = event_status
        super().__init__(message or f"Event is {event_status} and can no longer be modified")


class NoChangeError(EngineError):
    """Patch matches current state; nothing was written."""

    code = "no_change"
    status_code = 400

    def __init__(self, message: str = "No changes detected") -> None:
        super().__init__(message)


class AuditWriteFailed(Exception):
    """
    An audit entry could not be written.

    Never raised to callers. Instances are sent as the payload of the
    ``audit_write_failed`` signal so operators can alert on them.
    """

    code = "audit_write_failed"

    def __init__(self, entity_type: str, entity_id: Any, action: str, cause: BaseException) -> None:
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.action = action
        self.cause = cause
        super().__init__(f"Failed to record {action} for {entity_type} {self.entity_id}: {cause!r}")

"""
Status state machines for events and tasks.

Transition tables are static; every status change requested through a
service is validated here before it is written.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from apps.core.constants import EventStatus, TaskStatus
from apps.core.exceptions import EventClosedError, InvalidTransitionError, NoChangeError

if TYPE_CHECKING:
    from apps.incidents.models import Event

EVENT_TRANSITIONS: Mapping[str, frozenset[str]] = {
    EventStatus.UPCOMING: frozenset({EventStatus.IN_PROGRESS, EventStatus.CANCELLED}),
    EventStatus.IN_PROGRESS: frozenset({EventStatus.FINISHED, EventStatus.CANCELLED}),
    EventStatus.FINISHED: frozenset(),
    EventStatus.CANCELLED: frozenset(),
}

TASK_TRANSITIONS: Mapping[str, frozenset[str]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED}),
    TaskStatus.IN_PROGRESS: frozenset(
        {TaskStatus.COMPLETED, TaskStatus.PENDING, TaskStatus.CANCELLED}
    ),
    TaskStatus.COMPLETED: frozenset({TaskStatus.IN_PROGRESS}),
    TaskStatus.CANCELLED: frozenset({TaskStatus.PENDING}),
}


@dataclass(frozen=True)
class StateMachine:
    """A named finite-state machine over string statuses."""

    entity: str
    transitions: Mapping[str, frozenset[str]]

    @property
    def states(self) -> list[str]:
        return list(self.transitions)

    def allowed_transitions(self, current: str) -> frozenset[str]:
        return self.transitions.get(current, frozenset())

    def can_transition(self, current: str, requested: str) -> bool:
        return requested in self.allowed_transitions(current)

    def is_terminal(self, status: str) -> bool:
        return not self.allowed_transitions(status)

    def check_transition(self, current: str, requested: str) -> None:
        """
        Validate a requested status change.

        Raises:
            NoChangeError: requested equals current.
            InvalidTransitionError: pair not in the table. The error lists
                the legal next states.
        """
        if requested == current:
            raise NoChangeError(f"{self.entity.capitalize()} is already {current}")
        if not self.can_transition(current, requested):
            raise InvalidTransitionError(
                self.entity,
                current,
                requested,
                self.allowed_transitions(current),
            )


EVENT_LIFECYCLE = StateMachine("event", EVENT_TRANSITIONS)
TASK_LIFECYCLE = StateMachine("task", TASK_TRANSITIONS)


def ensure_event_open(event: "Event", message: str | None = None) -> None:
    """Raise EventClosedError if the event is finished or cancelled."""
    if event.is_closed:
        raise EventClosedError(event.status, message)

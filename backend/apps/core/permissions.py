"""
Authorization gate.

``authorize`` is a pure decision over the actor and target as read inside
the caller's transaction. Commanders pass every check. Everyone else is
judged by their relationship to the target: membership in its event,
authorship, assignment, or group leadership.

Usage:
    with transaction.atomic():
        actor = load_actor(actor)
        casualty = Casualty.objects.select_for_update().get(pk=casualty_id)
        enforce(actor, Action.CASUALTY_UPDATE, casualty)
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from apps.core.constants import Role
from apps.core.exceptions import ForbiddenError

if TYPE_CHECKING:
    from apps.accounts.models import Professional


class Action(StrEnum):
    EVENT_CREATE = "event.create"
    EVENT_UPDATE = "event.update"
    EVENT_TRANSITION = "event.transition"
    EVENT_DELETE = "event.delete"
    EVENT_LIST = "event.list"
    EVENT_VIEW = "event.view"
    CAMP_CREATE = "camp.create"
    CAMP_UPDATE = "camp.update"
    CAMP_DELETE = "camp.delete"
    CAMP_ASSIGN_SELF = "camp.assign_self"
    CAMP_ASSIGN_OTHER = "camp.assign_other"
    CASUALTY_ADD = "casualty.add"
    CASUALTY_VIEW = "casualty.view"
    CASUALTY_UPDATE = "casualty.update"
    CASUALTY_DELETE = "casualty.delete"
    TASK_CREATE = "task.create"
    TASK_VIEW = "task.view"
    TASK_UPDATE = "task.update"
    TASK_REASSIGN = "task.reassign"
    TASK_MODIFY_CLOSED = "task.modify_closed"
    TASK_CANCEL = "task.cancel"
    RESOURCE_REQUEST = "resource.request"
    RESOURCE_VIEW = "resource.view"
    RESOURCE_UPDATE = "resource.update"
    RESOURCE_CONFIRM = "resource.confirm"
    RESOURCE_DELETE = "resource.delete"
    GROUP_CREATE = "group.create"
    GROUP_VIEW = "group.view"
    GROUP_ASSIGN_LEAD = "group.assign_lead"
    GROUP_UPDATE = "group.update"
    GROUP_MANAGE_MEMBERS = "group.manage_members"
    GROUP_DELETE = "group.delete"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)

CAMP_MANAGER_ROLES = frozenset({Role.COMMANDER, Role.MEDICAL_OFFICER})


def is_commander(actor: "Professional") -> bool:
    return actor.role == Role.COMMANDER


def in_event(actor: "Professional", event_id: Any) -> bool:
    """True if the actor's current event is ``event_id``."""
    return event_id is not None and actor.current_event_id == event_id


def _deny(reason: str) -> Decision:
    return Decision(False, reason)


def _commander_only(reason: str) -> Callable[["Professional", Any], Decision]:
    def rule(actor: "Professional", target: Any) -> Decision:
        return _deny(reason)

    return rule


def _event_member(actor: "Professional", target: Any) -> Decision:
    event_id = getattr(target, "event_id", None) or getattr(target, "pk", None)
    if in_event(actor, event_id):
        return ALLOW
    return _deny("Access denied. You are not assigned to this event.")


def _camp_manager(actor: "Professional", target: Any) -> Decision:
    if actor.role not in CAMP_MANAGER_ROLES:
        return _deny("Only Commanders and Medical Officers can manage camps")
    return _event_member(actor, target)


def _casualty_editor(actor: "Professional", target: Any) -> Decision:
    if target.created_by_id == actor.pk or in_event(actor, target.event_id):
        return ALLOW
    return _deny("Access denied. You are not assigned to this casualty's event.")


def _creator(reason: str) -> Callable[["Professional", Any], Decision]:
    def rule(actor: "Professional", target: Any) -> Decision:
        if target.created_by_id == actor.pk:
            return ALLOW
        return _deny(reason)

    return rule


def _task_participant(reason: str) -> Callable[["Professional", Any], Decision]:
    def rule(actor: "Professional", target: Any) -> Decision:
        if actor.pk in (target.created_by_id, target.assigned_to_id):
            return ALLOW
        return _deny(reason)

    return rule


def _requester(actor: "Professional", target: Any) -> Decision:
    if target.requested_by_id == actor.pk:
        return ALLOW
    return _deny("Only the requester or a Commander can modify this resource request")


def _resource_viewer(actor: "Professional", target: Any) -> Decision:
    if target.requested_by_id == actor.pk or in_event(actor, target.event_id):
        return ALLOW
    return _deny("Access denied. You are not assigned to this resource request's event.")


def _group_lead(actor: "Professional", target: Any) -> Decision:
    if target.lead_id == actor.pk:
        return ALLOW
    return _deny("Only the group lead or a Commander can modify this group")


def _anyone(actor: "Professional", target: Any) -> Decision:
    return ALLOW


RULES: dict[Action, Callable[["Professional", Any], Decision]] = {
    Action.EVENT_CREATE: _commander_only("Only Commanders can create events"),
    Action.EVENT_UPDATE: _commander_only("Only Commanders can update events"),
    Action.EVENT_TRANSITION: _commander_only("Only Commanders can change event status"),
    Action.EVENT_DELETE: _commander_only("Only Commanders can delete events"),
    Action.EVENT_LIST: _anyone,
    Action.EVENT_VIEW: _event_member,
    Action.CAMP_CREATE: _camp_manager,
    Action.CAMP_UPDATE: _camp_manager,
    Action.CAMP_DELETE: _commander_only("Only Commanders can delete camps"),
    Action.CAMP_ASSIGN_SELF: _event_member,
    Action.CAMP_ASSIGN_OTHER: _commander_only("Only Commanders can assign other professionals"),
    Action.CASUALTY_ADD: _event_member,
    Action.CASUALTY_VIEW: _casualty_editor,
    Action.CASUALTY_UPDATE: _casualty_editor,
    Action.CASUALTY_DELETE: _creator("Only the creator or a Commander can delete this casualty"),
    Action.TASK_CREATE: _event_member,
    Action.TASK_VIEW: _task_participant("Access denied. You do not have access to this task."),
    Action.TASK_UPDATE: _task_participant(
        "Access denied. You can only modify tasks you created or are assigned to."
    ),
    Action.TASK_REASSIGN: _creator("Only the task creator or a Commander can reassign tasks"),
    Action.TASK_MODIFY_CLOSED: _creator(
        "Only the task creator or a Commander can modify completed or cancelled tasks"
    ),
    Action.TASK_CANCEL: _creator("Only the task creator or a Commander can cancel tasks"),
    Action.RESOURCE_REQUEST: _event_member,
    Action.RESOURCE_VIEW: _resource_viewer,
    Action.RESOURCE_UPDATE: _requester,
    Action.RESOURCE_CONFIRM: _event_member,
    Action.RESOURCE_DELETE: _requester,
    Action.GROUP_CREATE: _anyone,
    Action.GROUP_VIEW: _anyone,
    Action.GROUP_ASSIGN_LEAD: _commander_only("Only Commanders can assign another group lead"),
    Action.GROUP_UPDATE: _group_lead,
    Action.GROUP_MANAGE_MEMBERS: _group_lead,
    Action.GROUP_DELETE: _commander_only("Only Commanders can delete groups"),
}


def authorize(actor: "Professional", action: Action, target: Any = None) -> Decision:
    """
    Decide whether ``actor`` may perform ``action`` on ``target``.

    Args:
        actor: The acting professional, freshly read in the transaction.
        action: What is being attempted.
        target: The entity acted on. Event-scoped checks accept either an
            Event or any object with an ``event_id``.

    Returns:
        Decision(allowed, reason). Falsy when denied.
    """
    if not actor.is_active:
        return _deny("Account is disabled")
    if is_commander(actor):
        return ALLOW
    return RULES[action](actor, target)


def enforce(actor: "Professional", action: Action, target: Any = None) -> None:
    """
    Raise ForbiddenError unless ``authorize`` allows the action.

    Raises:
        ForbiddenError: With the denial reason.
    """
    decision = authorize(actor, action, target)
    if not decision:
        raise ForbiddenError(decision.reason)


def load_actor(actor: "Professional", *, lock: bool = False) -> "Professional":
    """
    Re-read the actor inside the current transaction.

    Authorization must see the actor's committed assignments, not the copy
    loaded when the request was authenticated.
    """
    from apps.accounts.models import Professional

    queryset = Professional.objects.all()
    if lock:
        queryset = queryset.select_for_update()
    return queryset.get(pk=actor.pk)

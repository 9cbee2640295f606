"""
Task services - creation, updates through the task state machine, cancel.

Once a task is completed or cancelled only its creator or a Commander may
touch it again, even though the transition table allows reopening.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.audit.services import created_changes, record_change
from apps.core.constants import Priority, TaskStatus
from apps.core.exceptions import ConstraintViolationError, NotFoundError
from apps.core.lifecycle import TASK_LIFECYCLE, ensure_event_open
from apps.core.logging import get_logger
from apps.core.patches import Changes, MutationResult, apply_changes, diff_patch, require_changes
from apps.core.permissions import Action, enforce, is_commander, load_actor
from apps.incidents.services import lock_event
from apps.tasks.models import Task

if TYPE_CHECKING:
    from apps.accounts.models import Professional
    from apps.tasks.schemas import TaskPatch

logger = get_logger(__name__)


def lock_task(task_id: Any) -> Task:
    """
    Raises:
        NotFoundError: If the task does not exist.
    """
    try:
        return Task.objects.select_for_update().get(pk=task_id)
    except Task.DoesNotExist:
        raise NotFoundError("Task not found") from None


def _resolve_assignee(actor: "Professional", assignee_id: Any, event_id: Any) -> "Professional":
    """
    Commanders may assign anyone; others only professionals in the event.

    Raises:
        NotFoundError: Assignee does not exist.
        ConstraintViolationError: Assignee is not in the event.
    """
    from apps.accounts.models import Professional

    assignee = Professional.objects.filter(pk=assignee_id).first()
    if assignee is None:
        raise NotFoundError("Assigned professional not found")
    if not is_commander(actor) and assignee.current_event_id != event_id:
        raise ConstraintViolationError("Assigned professional is not part of this event")
    return assignee


def _check_due_date(due_date: datetime | None) -> None:
    if due_date is not None and due_date < timezone.now():
        raise ConstraintViolationError("Due date cannot be in the past")


def create_task(
    actor: "Professional",
    event_id: Any,
    *,
    assigned_to_id: Any,
    description: str,
    priority: str = Priority.MEDIUM,
    due_date: datetime | None = None,
    notes: str = "",
) -> Task:
    """
    Create a pending task in an open event.

    Raises:
        NotFoundError: Event or assignee does not exist.
        ForbiddenError: Actor is not in the event.
        EventClosedError: Event is finished or cancelled.
        ConstraintViolationError: Assignee outside the event, or due date in
            the past.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        event = lock_event(event_id)
        enforce(actor, Action.TASK_CREATE, event)
        ensure_event_open(event, f"Cannot create tasks in a {event.status} event")

        assignee = _resolve_assignee(actor, assigned_to_id, event.pk)
        _check_due_date(due_date)

        task = Task.objects.create(
            event=event,
            assigned_to=assignee,
            description=description,
            priority=priority,
            due_date=due_date,
            notes=notes,
            status=TaskStatus.PENDING,
            created_by=actor,
            updated_by=actor,
        )
        record_change(task, actor=actor, action="task.created", changes=created_changes(task))

    logger.info(
        "task_created",
        task_id=str(task.pk),
        event_id=str(event.pk),
        assigned_to_id=str(assignee.pk),
        priority=priority,
    )
    return task


def _stamp_completion(task: Task, changes: Changes) -> None:
    new_status = changes.get("status", {}).get("to")
    if new_status is None:
        return
    if new_status == TaskStatus.COMPLETED:
        changes["completed_at"] = {"from": task.completed_at, "to": timezone.now()}
    elif task.completed_at is not None:
        changes["completed_at"] = {"from": task.completed_at, "to": None}


def update_task(actor: "Professional", task_id: Any, patch: "TaskPatch") -> MutationResult[Task]:
    """
    Apply a patch to a task.

    Status changes are checked against the task state machine. Completing a
    task stamps completed_at; reopening clears it. A due date in the past is
    only accepted together with completing the task.

    Raises:
        NotFoundError: Task or new assignee does not exist.
        ForbiddenError: Actor is not creator/assignee, or reassigns or
            touches a closed task without being creator or Commander.
        InvalidTransitionError: Status change not in the table.
        ConstraintViolationError: Bad assignee or due date.
        NoChangeError: Patch matches current state.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        task = lock_task(task_id)
        enforce(actor, Action.TASK_UPDATE, task)
        if task.is_closed:
            enforce(actor, Action.TASK_MODIFY_CLOSED, task)

        changes = diff_patch(task, patch)
        require_changes(changes)

        if "assigned_to_id" in changes:
            enforce(actor, Action.TASK_REASSIGN, task)
            _resolve_assignee(actor, changes["assigned_to_id"]["to"], task.event_id)

        new_status = changes.get("status", {}).get("to")
        if new_status is not None:
            TASK_LIFECYCLE.check_transition(task.status, new_status)

        if "due_date" in changes and new_status != TaskStatus.COMPLETED:
            _check_due_date(changes["due_date"]["to"])

        _stamp_completion(task, changes)
        changed = apply_changes(task, changes, actor)
        record_change(task, actor=actor, action="task.updated", changes=changes)

    logger.info("task_updated", task_id=str(task.pk), changed_fields=changed)
    return MutationResult(task, changed)


def cancel_task(actor: "Professional", task_id: Any) -> MutationResult[Task]:
    """
    Cancel a task. Tasks are never physically deleted.

    Raises:
        NotFoundError: Task does not exist.
        ForbiddenError: Actor is neither creator nor Commander.
        InvalidTransitionError: Task is completed (reopen it first).
        NoChangeError: Task is already cancelled.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        task = lock_task(task_id)
        enforce(actor, Action.TASK_CANCEL, task)
        TASK_LIFECYCLE.check_transition(task.status, TaskStatus.CANCELLED)

        changes: Changes = {"status": {"from": task.status, "to": TaskStatus.CANCELLED}}
        changed = apply_changes(task, changes, actor)
        record_change(task, actor=actor, action="task.cancelled", changes=changes)

    logger.info("task_cancelled", task_id=str(task.pk))
    return MutationResult(task, changed)


def list_tasks(
    actor: "Professional",
    *,
    event_id: Any = None,
    assigned_to_id: Any = None,
    status: str | None = None,
    priority: str | None = None,
    mine: bool = False,
) -> list[Task]:
    """
    Tasks in priority order, most urgent first.

    Non-Commanders only ever see tasks they created or are assigned to;
    ``mine`` applies the same restriction to a Commander.
    """
    actor = load_actor(actor)
    queryset = Task.objects.all()
    if mine or not is_commander(actor):
        queryset = queryset.filter(Q(created_by=actor) | Q(assigned_to=actor))
    if event_id is not None:
        queryset = queryset.filter(event_id=event_id)
    if assigned_to_id is not None:
        queryset = queryset.filter(assigned_to_id=assigned_to_id)
    if status is not None:
        queryset = queryset.filter(status=status)
    if priority is not None:
        queryset = queryset.filter(priority=priority)
    return list(queryset.by_priority())


def get_task(actor: "Professional", task_id: Any) -> Task:
    """
    Raises:
        NotFoundError: Task does not exist.
        ForbiddenError: Actor neither created nor is assigned the task.
    """
    actor = load_actor(actor)
    task = Task.objects.filter(pk=task_id).first()
    if task is None:
        raise NotFoundError("Task not found")
    enforce(actor, Action.TASK_VIEW, task)
    return task

"""
Event services - lifecycle, membership by invite code, deletion.

Every function runs in one transaction. The event row is locked with
SELECT ... FOR UPDATE before its status is checked, so a status change and
a concurrent join or content edit cannot interleave.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from django.db import IntegrityError, transaction
from django.db.models import Count, F, QuerySet
from django.utils import timezone

from apps.audit.models import AuditLog
from apps.audit.services import created_changes, deleted_changes, record, record_change
from apps.camps.admission import admit_professional, lock_camp
from apps.camps.models import Camp
from apps.core.constants import INITIAL_EVENT_STATUSES, EventStatus
from apps.core.exceptions import ConstraintViolationError, NoChangeError, NotFoundError
from apps.core.lifecycle import EVENT_LIFECYCLE, ensure_event_open
from apps.core.logging import get_logger
from apps.core.patches import MutationResult, apply_changes, diff_patch, require_changes
from apps.core.permissions import Action, enforce, is_commander, load_actor
from apps.incidents.models import Event, generate_invite_code, normalize_invite_code

if TYPE_CHECKING:
    from apps.accounts.models import Professional
    from apps.incidents.schemas import EventPatch

logger = get_logger(__name__)

INVITE_CODE_ATTEMPTS = 5


@dataclass
class JoinResult:
    """Result of joining an event by invite code."""

    event: Event
    camp: Camp | None
    changed_fields: list[str] = field(default_factory=list)


@dataclass
class EventDeletion:
    """Result of deleting an event."""

    event_id: UUID
    deleted_counts: dict[str, int]


def lock_event(event_id: Any) -> Event:
    """
    Fetch and lock an event inside the current transaction.

    Raises:
        NotFoundError: If the event does not exist.
    """
    try:
        return Event.objects.select_for_update().get(pk=event_id)
    except Event.DoesNotExist:
        raise NotFoundError("Event not found") from None


def _check_times(start_time: datetime | None, finish_time: datetime | None) -> None:
    if start_time is not None and finish_time is not None and finish_time <= start_time:
        raise ConstraintViolationError("Finish time must be after start time")


def _assignment_changes(
    professional: "Professional", event_id: Any, camp_id: Any
) -> dict[str, dict[str, Any]]:
    changes = {}
    if professional.current_event_id != event_id:
        changes["current_event_id"] = {"from": professional.current_event_id, "to": event_id}
    if professional.current_camp_id != camp_id:
        changes["current_camp_id"] = {"from": professional.current_camp_id, "to": camp_id}
    return changes


def _create_with_unique_code(**fields: Any) -> Event:
    for _ in range(INVITE_CODE_ATTEMPTS):
        try:
            with transaction.atomic():
                return Event.objects.create(invite_code=generate_invite_code(), **fields)
        except IntegrityError:
            logger.warning("invite_code_collision")
    raise ConstraintViolationError("Could not generate a unique invite code")


def create_event(
    actor: "Professional",
    *,
    name: str,
    location: str = "",
    start_time: datetime | None = None,
    finish_time: datetime | None = None,
    status: str = EventStatus.UPCOMING,
) -> Event:
    """
    Create an event and move the creator into it.

    Args:
        actor: Must be a Commander.
        name: Display name.
        location: Free-text location.
        start_time: Optional planned start.
        finish_time: Optional planned finish, after start_time.
        status: upcoming (default) or in_progress.

    Returns:
        The new Event, with a freshly generated invite code.

    Raises:
        ForbiddenError: Actor is not a Commander.
        ConstraintViolationError: Bad initial status or time range.
    """
    with transaction.atomic():
        actor = load_actor(actor, lock=True)
        enforce(actor, Action.EVENT_CREATE)

        if status not in INITIAL_EVENT_STATUSES:
            raise ConstraintViolationError(f"Cannot create an event with status {status}")
        _check_times(start_time, finish_time)

        event = _create_with_unique_code(
            name=name,
            location=location,
            start_time=start_time,
            finish_time=finish_time,
            status=status,
            created_by=actor,
            updated_by=actor,
        )

        actor.current_event = event
        actor.current_camp = None
        actor.save(update_fields=["current_event", "current_camp", "updated_at"])

        record_change(event, actor=actor, action="event.created", changes=created_changes(event))

    logger.info("event_created", event_id=str(event.pk), status=event.status)
    return event


def update_event(actor: "Professional", event_id: Any, patch: "EventPatch") -> MutationResult[Event]:
    """
    Edit an event's name, location or times.

    Raises:
        NotFoundError: Event does not exist.
        ForbiddenError: Actor is not a Commander.
        EventClosedError: Event is finished or cancelled.
        ConstraintViolationError: Finish would not be after start.
        NoChangeError: Patch matches current state.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        event = lock_event(event_id)
        enforce(actor, Action.EVENT_UPDATE, event)
        ensure_event_open(event, f"Cannot modify a {event.status} event")

        changes = diff_patch(event, patch)
        require_changes(changes)
        _check_times(
            changes.get("start_time", {}).get("to", event.start_time),
            changes.get("finish_time", {}).get("to", event.finish_time),
        )

        changed = apply_changes(event, changes, actor)
        record_change(event, actor=actor, action="event.updated", changes=changes)

    logger.info("event_updated", event_id=str(event.pk), changed_fields=changed)
    return MutationResult(event, changed)


def transition_event(actor: "Professional", event_id: Any, new_status: str) -> MutationResult[Event]:
    """
    Move an event to a new status.

    Entering finished stamps finish_time if it is not set yet.

    Raises:
        NotFoundError: Event does not exist.
        ForbiddenError: Actor is not a Commander.
        InvalidTransitionError: Not allowed from the current status; the
            message lists the legal next states.
        NoChangeError: Event already has that status.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        event = lock_event(event_id)
        enforce(actor, Action.EVENT_TRANSITION, event)
        EVENT_LIFECYCLE.check_transition(event.status, new_status)

        changes: dict[str, dict[str, Any]] = {"status": {"from": event.status, "to": new_status}}
        if new_status == EventStatus.FINISHED and event.finish_time is None:
            changes["finish_time"] = {"from": None, "to": timezone.now()}

        changed = apply_changes(event, changes, actor)
        record_change(event, actor=actor, action="event.status_changed", changes=changes)

    logger.info(
        "event_status_changed",
        event_id=str(event.pk),
        from_status=changes["status"]["from"],
        to_status=new_status,
    )
    return MutationResult(event, changed)


def delete_event(actor: "Professional", event_id: Any, *, force: bool = False) -> EventDeletion:
    """
    Delete an event.

    Without ``force`` the event must be idle: not in progress and with no
    camps, casualties, tasks or resource requests. With ``force`` all of
    those are deleted too and every professional in the event is unassigned.

    Raises:
        NotFoundError: Event does not exist.
        ForbiddenError: Actor is not a Commander.
        ConstraintViolationError: Event has dependents or is in progress and
            force was not given.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        event = lock_event(event_id)
        enforce(actor, Action.EVENT_DELETE, event)

        counts = {
            "camps": event.camp_set.count(),
            "casualties": event.casualty_set.count(),
            "tasks": event.task_set.count(),
            "resource_requests": event.resourcerequest_set.count(),
        }
        if not force:
            if event.status == EventStatus.IN_PROGRESS:
                raise ConstraintViolationError(
                    "Cannot delete an event that is in progress. Use force to delete anyway."
                )
            existing = ", ".join(f"{n} {label}" for label, n in counts.items() if n)
            if existing:
                raise ConstraintViolationError(
                    f"Cannot delete event with existing data ({existing}). "
                    "Use force to delete anyway."
                )

        from apps.accounts.models import Professional

        unassigned = Professional.objects.filter(current_event=event).update(
            current_event=None, current_camp=None
        )

        record_change(
            event,
            actor=actor,
            action="event.deleted",
            changes=deleted_changes(event),
            metadata={"force": force, "unassigned_professionals": unassigned, **counts},
        )
        deleted_id = event.pk
        event.delete()

    logger.info("event_deleted", event_id=str(deleted_id), force=force, **counts)
    return EventDeletion(event_id=deleted_id, deleted_counts=counts)


def join_event_by_code(actor: "Professional", code: str, camp_id: Any = None) -> JoinResult:
    """
    Join an event by invite code, optionally straight into one of its camps.

    Replaces any previous event and camp assignment. Joining the event and
    camp the actor is already in changes nothing and writes no audit entry.

    Raises:
        NotFoundError: No event has that code, or the camp does not exist.
        EventClosedError: Event is finished or cancelled.
        ConstraintViolationError: Camp belongs to another event.
        CapacityExceededError: Camp is full.
    """
    with transaction.atomic():
        # Lock order: event, camp, professional
        event = Event.objects.select_for_update().filter(invite_code=normalize_invite_code(code)).first()
        if event is None:
            raise NotFoundError("Invalid invite code")
        ensure_event_open(event, f"Cannot join a {event.status} event")

        camp = lock_camp(camp_id) if camp_id is not None else None
        actor = load_actor(actor, lock=True)
        if camp is not None:
            if camp.event_id != event.pk:
                raise ConstraintViolationError("Camp does not belong to this event")
            admit_professional(camp, actor)

        changes = _assignment_changes(actor, event.pk, camp.pk if camp else None)
        if not changes:
            return JoinResult(event=event, camp=camp)

        previous_event_id = actor.current_event_id
        actor.current_event = event
        actor.current_camp = camp
        actor.save(update_fields=["current_event", "current_camp", "updated_at"])

        record(
            AuditLog.EntityType.EVENT,
            event.pk,
            actor=actor,
            action="event.member_joined",
            changes=changes,
            event_id=event.pk,
            metadata={"professional_id": actor.pk},
        )

    logger.info(
        "event_joined",
        event_id=str(event.pk),
        camp_id=str(camp.pk) if camp else None,
        previous_event_id=str(previous_event_id) if previous_event_id else None,
    )
    return JoinResult(event=event, camp=camp, changed_fields=list(changes))


def leave_event(actor: "Professional") -> None:
    """
    Leave the current event, clearing both event and camp.

    Always permitted on oneself, whatever the event's status.

    Raises:
        NoChangeError: Actor is not in an event.
    """
    with transaction.atomic():
        actor = load_actor(actor, lock=True)
        event_id = actor.current_event_id
        if event_id is None:
            raise NoChangeError("Not currently assigned to an event")

        changes = _assignment_changes(actor, None, None)
        actor.current_event = None
        actor.current_camp = None
        actor.save(update_fields=["current_event", "current_camp", "updated_at"])

        record(
            AuditLog.EntityType.EVENT,
            event_id,
            actor=actor,
            action="event.member_left",
            changes=changes,
            event_id=event_id,
            metadata={"professional_id": actor.pk},
        )

    logger.info("event_left", event_id=str(event_id))


def _with_counts(queryset: QuerySet[Event]) -> QuerySet[Event]:
    return queryset.annotate(
        camp_count=Count("camp_set", distinct=True),
        casualty_count=Count("casualty_set", distinct=True),
        professional_count=Count("professionals", distinct=True),
    )


def load_visible_event(actor: "Professional", event_id: Any) -> Event:
    """
    Fetch an event the actor may read, without locking it.

    Raises:
        NotFoundError: Event does not exist.
        ForbiddenError: Actor is neither in the event nor a Commander.
    """
    event = Event.objects.filter(pk=event_id).first()
    if event is None:
        raise NotFoundError("Event not found")
    enforce(actor, Action.EVENT_VIEW, event)
    return event


def list_events(actor: "Professional", *, status: str | None = None) -> list[Event]:
    """
    Events the actor can see, latest start first.

    Commanders see every event. Everyone else sees only the event they are
    currently in, so invite codes of other events stay private. Each event
    carries camp_count, casualty_count and professional_count.
    """
    actor = load_actor(actor)
    enforce(actor, Action.EVENT_LIST)

    queryset = Event.objects.all()
    if not is_commander(actor):
        if actor.current_event_id is None:
            return []
        queryset = queryset.filter(pk=actor.current_event_id)
    if status is not None:
        queryset = queryset.filter(status=status)
    return list(
        _with_counts(queryset).order_by(F("start_time").desc(nulls_last=True), "-created_at")
    )


def get_event(actor: "Professional", event_id: Any) -> Event:
    """
    One event with its member counts.

    Raises:
        NotFoundError: Event does not exist.
        ForbiddenError: Actor is neither in the event nor a Commander.
    """
    actor = load_actor(actor)
    load_visible_event(actor, event_id)
    return _with_counts(Event.objects.filter(pk=event_id)).get()

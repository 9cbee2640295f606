"""
Casualty services - intake, status updates, transfers between camps.

Each field change is recorded with its previous and new value. A patch
that changes nothing raises NoChangeError before anything is written.
"""

from typing import TYPE_CHECKING, Any

from django.db import transaction

from apps.audit.models import AuditLog
from apps.audit.services import created_changes, deleted_changes, list_history, record_change
from apps.camps.admission import admit_casualty, lock_camp
from apps.casualties.models import Casualty
from apps.core.exceptions import ConstraintViolationError, NotFoundError
from apps.core.lifecycle import ensure_event_open
from apps.core.logging import get_logger
from apps.core.patches import MutationResult, apply_changes, diff_patch, require_changes
from apps.core.permissions import Action, enforce, load_actor
from apps.incidents.models import Event
from apps.incidents.services import load_visible_event, lock_event

if TYPE_CHECKING:
    from apps.accounts.models import Professional
    from apps.casualties.schemas import CasualtyPatch

logger = get_logger(__name__)


def lock_casualty_and_event(casualty_id: Any) -> tuple[Casualty, Event]:
    """
    Lock a casualty and its event, event first.

    Raises:
        NotFoundError: If the casualty does not exist.
    """
    event_id = Casualty.objects.filter(pk=casualty_id).values_list("event_id", flat=True).first()
    if event_id is None:
        raise NotFoundError("Casualty not found")
    event = lock_event(event_id)
    try:
        casualty = Casualty.objects.select_for_update().get(pk=casualty_id)
    except Casualty.DoesNotExist:
        raise NotFoundError("Casualty not found") from None
    return casualty, event


def add_casualty(
    actor: "Professional",
    event_id: Any,
    *,
    color: str,
    camp_id: Any = None,
    breathing: bool | None = None,
    conscious: bool | None = None,
    bleeding: bool | None = None,
    hospital_status: str = "",
    other_information: str = "",
) -> Casualty:
    """
    Register a casualty in an event, optionally at one of its camps.

    Raises:
        NotFoundError: Event or camp does not exist.
        ForbiddenError: Actor is not in the event.
        EventClosedError: Event is finished or cancelled.
        ConstraintViolationError: Camp belongs to another event.
        CapacityExceededError: Camp is full.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        event = lock_event(event_id)
        enforce(actor, Action.CASUALTY_ADD, event)
        ensure_event_open(event, f"Cannot add casualties to a {event.status} event")

        camp = None
        if camp_id is not None:
            camp = lock_camp(camp_id)
            if camp.event_id != event.pk:
                raise ConstraintViolationError("Camp does not belong to this event")
            admit_casualty(camp)

        casualty = Casualty.objects.create(
            event=event,
            camp=camp,
            color=color,
            breathing=breathing,
            conscious=conscious,
            bleeding=bleeding,
            hospital_status=hospital_status,
            other_information=other_information,
            created_by=actor,
            updated_by=actor,
        )
        record_change(
            casualty, actor=actor, action="casualty.created", changes=created_changes(casualty)
        )

    logger.info(
        "casualty_added",
        casualty_id=str(casualty.pk),
        event_id=str(event.pk),
        camp_id=str(camp.pk) if camp else None,
        color=color,
    )
    return casualty


def update_casualty_status(
    actor: "Professional",
    casualty_id: Any,
    patch: "CasualtyPatch",
) -> MutationResult[Casualty]:
    """
    Apply a status patch to a casualty.

    Setting ``camp_id`` transfers the casualty to another camp of the same
    event (subject to capacity); setting it to None takes it out of its camp.

    Raises:
        NotFoundError: Casualty or target camp does not exist.
        ForbiddenError: Actor is neither in the event nor the creator.
        EventClosedError: Event is finished or cancelled.
        ConstraintViolationError: Target camp belongs to another event.
        CapacityExceededError: Target camp is full.
        NoChangeError: Patch matches current state.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        casualty, event = lock_casualty_and_event(casualty_id)
        enforce(actor, Action.CASUALTY_UPDATE, casualty)
        ensure_event_open(event, f"Cannot update casualties of a {event.status} event")

        changes = diff_patch(casualty, patch)
        require_changes(changes)

        new_camp_id = changes.get("camp_id", {}).get("to")
        if new_camp_id is not None:
            camp = lock_camp(new_camp_id)
            if camp.event_id != casualty.event_id:
                raise ConstraintViolationError("Camp must belong to the casualty's event")
            admit_casualty(camp, casualty)

        changed = apply_changes(casualty, changes, actor)
        record_change(casualty, actor=actor, action="casualty.updated", changes=changes)

    logger.info("casualty_updated", casualty_id=str(casualty.pk), changed_fields=changed)
    return MutationResult(casualty, changed)


def delete_casualty(actor: "Professional", casualty_id: Any) -> None:
    """
    Remove a casualty record. The audit entry keeps the full snapshot.

    Raises:
        NotFoundError: Casualty does not exist.
        ForbiddenError: Actor is neither a Commander nor the creator.
        EventClosedError: Event is finished or cancelled.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        casualty, event = lock_casualty_and_event(casualty_id)
        enforce(actor, Action.CASUALTY_DELETE, casualty)
        ensure_event_open(event, f"Cannot delete casualties of a {event.status} event")

        record_change(
            casualty, actor=actor, action="casualty.deleted", changes=deleted_changes(casualty)
        )
        deleted_id = casualty.pk
        casualty.delete()

    logger.info("casualty_deleted", casualty_id=str(deleted_id))


def get_casualty_history(actor: "Professional", casualty_id: Any) -> list[AuditLog]:
    """
    Audit trail of one casualty, oldest first.

    Raises:
        NotFoundError: Casualty does not exist.
        ForbiddenError: Actor is neither in the event nor the creator.
    """
    actor = load_actor(actor)
    casualty = Casualty.objects.filter(pk=casualty_id).first()
    if casualty is None:
        raise NotFoundError("Casualty not found")
    enforce(actor, Action.CASUALTY_VIEW, casualty)
    return list_history(AuditLog.EntityType.CASUALTY, casualty.pk)


def list_casualties(actor: "Professional", event_id: Any, *, color: str | None = None) -> list[Casualty]:
    """
    Casualties of an event in triage order, most urgent first.

    Raises:
        NotFoundError: Event does not exist.
        ForbiddenError: Actor is not in the event.
    """
    event = load_visible_event(load_actor(actor), event_id)

    queryset = Casualty.objects.filter(event=event)
    if color is not None:
        queryset = queryset.filter(color=color)
    return list(queryset.by_triage())

"""
Camp services - camp CRUD and professional placement.

Lock order inside every transaction is event, then camp, then
professional. A camp's event is locked so that a concurrent status change
cannot slip between the open-event check and the write.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from uuid import UUID

from django.db import transaction

from apps.audit.models import AuditLog
from apps.audit.services import created_changes, deleted_changes, record, record_change
from apps.camps.admission import (
    admit_professional,
    casualty_count,
    check_camp_capacity_change,
    lock_camp,
    professional_count,
)
from apps.camps.models import Camp
from apps.core.exceptions import ConstraintViolationError, NoChangeError, NotFoundError
from apps.core.lifecycle import ensure_event_open
from apps.core.logging import get_logger
from apps.core.patches import MutationResult, apply_changes, diff_patch, require_changes
from apps.core.permissions import Action, enforce, load_actor
from apps.incidents.models import Event
from apps.incidents.services import load_visible_event, lock_event

if TYPE_CHECKING:
    from apps.accounts.models import Professional
    from apps.camps.schemas import CampPatch

logger = get_logger(__name__)


@dataclass
class CampDeletion:
    """Result of deleting a camp."""

    camp_id: UUID
    event_id: UUID
    location_name: str
    unassigned_professionals: int
    unassigned_casualties: int


def lock_camp_and_event(camp_id: Any) -> tuple[Camp, Event]:
    """
    Lock a camp and its event, event first.

    Raises:
        NotFoundError: If the camp does not exist.
    """
    event_id = Camp.objects.filter(pk=camp_id).values_list("event_id", flat=True).first()
    if event_id is None:
        raise NotFoundError("Camp not found")
    event = lock_event(event_id)
    return lock_camp(camp_id), event


def _lock_professional(professional_id: Any) -> "Professional":
    from apps.accounts.models import Professional

    try:
        return Professional.objects.select_for_update().get(pk=professional_id)
    except Professional.DoesNotExist:
        raise NotFoundError("Professional not found") from None


def create_camp(
    actor: "Professional",
    event_id: Any,
    *,
    location_name: str,
    capacity: int | None = None,
) -> Camp:
    """
    Create a camp in an open event.

    Raises:
        NotFoundError: Event does not exist.
        ForbiddenError: Actor is neither a Commander nor a Medical Officer
            in this event.
        EventClosedError: Event is finished or cancelled.
        ConstraintViolationError: Negative capacity.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        event = lock_event(event_id)
        enforce(actor, Action.CAMP_CREATE, event)
        ensure_event_open(event, f"Cannot add camps to a {event.status} event")
        if capacity is not None and capacity < 0:
            raise ConstraintViolationError("Capacity cannot be negative")

        camp = Camp.objects.create(
            event=event,
            location_name=location_name,
            capacity=capacity,
            created_by=actor,
            updated_by=actor,
        )
        record_change(camp, actor=actor, action="camp.created", changes=created_changes(camp))

    logger.info("camp_created", camp_id=str(camp.pk), event_id=str(event.pk), capacity=capacity)
    return camp


def update_camp(actor: "Professional", camp_id: Any, patch: "CampPatch") -> MutationResult[Camp]:
    """
    Rename a camp or change its capacity.

    Capacity may not drop below current occupancy; the count is taken after
    the camp row is locked.

    Raises:
        NotFoundError: Camp does not exist.
        ForbiddenError: Actor may not manage camps in this event.
        EventClosedError: Event is finished or cancelled.
        CapacityExceededError: New capacity is below occupancy.
        NoChangeError: Patch matches current state.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        camp, event = lock_camp_and_event(camp_id)
        enforce(actor, Action.CAMP_UPDATE, camp)
        ensure_event_open(event, f"Cannot modify camps of a {event.status} event")

        changes = diff_patch(camp, patch)
        require_changes(changes)
        if "capacity" in changes:
            new_capacity = changes["capacity"]["to"]
            if new_capacity is not None and new_capacity < 0:
                raise ConstraintViolationError("Capacity cannot be negative")
            check_camp_capacity_change(camp, new_capacity)

        changed = apply_changes(camp, changes, actor)
        record_change(camp, actor=actor, action="camp.updated", changes=changes)

    logger.info("camp_updated", camp_id=str(camp.pk), changed_fields=changed)
    return MutationResult(camp, changed)


def delete_camp(actor: "Professional", camp_id: Any, *, force: bool = False) -> CampDeletion:
    """
    Delete a camp.

    Without ``force`` the camp must be empty. With ``force`` its
    professionals and casualties are unassigned (they stay in the event).

    Raises:
        NotFoundError: Camp does not exist.
        ForbiddenError: Actor is not a Commander.
        EventClosedError: Event is finished or cancelled.
        ConstraintViolationError: Camp is occupied and force was not given.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        camp, event = lock_camp_and_event(camp_id)
        enforce(actor, Action.CAMP_DELETE, camp)
        ensure_event_open(event, f"Cannot delete camps of a {event.status} event")

        professionals = professional_count(camp)
        casualties = casualty_count(camp)
        if (professionals or casualties) and not force:
            raise ConstraintViolationError(
                f"Cannot delete camp with {professionals} assigned professionals and "
                f"{casualties} casualties. Use force to unassign them."
            )
        if force:
            camp.professionals.update(current_camp=None)
            camp.casualties.update(camp=None)

        record_change(
            camp,
            actor=actor,
            action="camp.deleted",
            changes=deleted_changes(camp),
            metadata={
                "force": force,
                "unassigned_professionals": professionals,
                "unassigned_casualties": casualties,
            },
        )
        result = CampDeletion(
            camp_id=camp.pk,
            event_id=camp.event_id,
            location_name=camp.location_name,
            unassigned_professionals=professionals,
            unassigned_casualties=casualties,
        )
        camp.delete()

    logger.info(
        "camp_deleted",
        camp_id=str(result.camp_id),
        force=force,
        unassigned_professionals=professionals,
        unassigned_casualties=casualties,
    )
    return result


def assign_professional(
    actor: "Professional",
    camp_id: Any,
    professional_id: Any = None,
) -> MutationResult["Professional"]:
    """
    Place a professional (the actor by default) in a camp of their event.

    Moving out of another camp of the same event is implied.

    Raises:
        NotFoundError: Camp or professional does not exist.
        ForbiddenError: Placing someone else without being a Commander, or
            placing oneself in a camp of another event.
        EventClosedError: Event is finished or cancelled.
        ConstraintViolationError: Professional is not in the camp's event.
        CapacityExceededError: Camp is full.
        NoChangeError: Already in that camp.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        target_id = professional_id if professional_id is not None else actor.pk
        action = Action.CAMP_ASSIGN_SELF if target_id == actor.pk else Action.CAMP_ASSIGN_OTHER

        camp, event = lock_camp_and_event(camp_id)
        enforce(actor, action, camp)
        ensure_event_open(event, f"Cannot assign to camps of a {event.status} event")

        professional = _lock_professional(target_id)
        if professional.current_event_id != camp.event_id:
            raise ConstraintViolationError("Professional is not assigned to this camp's event")
        if professional.current_camp_id == camp.pk:
            raise NoChangeError("Already assigned to this camp")
        admit_professional(camp, professional)

        changes = {"current_camp_id": {"from": professional.current_camp_id, "to": camp.pk}}
        professional.current_camp = camp
        professional.save(update_fields=["current_camp", "updated_at"])

        record(
            AuditLog.EntityType.CAMP,
            camp.pk,
            actor=actor,
            action="camp.professional_assigned",
            changes=changes,
            event_id=camp.event_id,
            metadata={"professional_id": professional.pk},
        )

    logger.info("professional_assigned", camp_id=str(camp.pk), professional_id=str(professional.pk))
    return MutationResult(professional, ["current_camp_id"])


def unassign_professional(
    actor: "Professional",
    professional_id: Any = None,
) -> MutationResult["Professional"]:
    """
    Take a professional (the actor by default) out of their camp.

    They stay in the event. Always permitted on oneself, whatever the
    camp's capacity or the event's status.

    Raises:
        NotFoundError: Professional does not exist.
        ForbiddenError: Unassigning someone else without being a Commander.
        NoChangeError: Not in a camp.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        target_id = professional_id if professional_id is not None else actor.pk
        professional = _lock_professional(target_id)
        if professional.pk != actor.pk:
            enforce(actor, Action.CAMP_ASSIGN_OTHER, professional)
        if professional.current_camp_id is None:
            raise NoChangeError("Not assigned to a camp")

        camp_id = professional.current_camp_id
        changes = {"current_camp_id": {"from": camp_id, "to": None}}
        professional.current_camp = None
        professional.save(update_fields=["current_camp", "updated_at"])

        record(
            AuditLog.EntityType.CAMP,
            camp_id,
            actor=actor,
            action="camp.professional_unassigned",
            changes=changes,
            event_id=professional.current_event_id,
            metadata={"professional_id": professional.pk},
        )

    logger.info("professional_unassigned", camp_id=str(camp_id), professional_id=str(professional.pk))
    return MutationResult(professional, ["current_camp_id"])


def list_camps(actor: "Professional", event_id: Any) -> list[Camp]:
    """
    Camps of an event by location name, with occupancy counts.

    Raises:
        NotFoundError: Event does not exist.
        ForbiddenError: Actor is not in the event.
    """
    event = load_visible_event(load_actor(actor), event_id)
    return list(Camp.objects.filter(event=event).with_occupancy())


def get_camp(actor: "Professional", camp_id: Any) -> Camp:
    """
    Raises:
        NotFoundError: Camp does not exist.
        ForbiddenError: Actor is not in the camp's event.
    """
    actor = load_actor(actor)
    camp = Camp.objects.filter(pk=camp_id).with_occupancy().first()
    if camp is None:
        raise NotFoundError("Camp not found")
    enforce(actor, Action.EVENT_VIEW, camp)
    return camp

"""
Resource request services.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from apps.audit.services import created_changes, deleted_changes, record_change
from apps.core.constants import PRIORITY_DISPLAY_ORDER, Priority
from apps.core.exceptions import NotFoundError
from apps.core.lifecycle import ensure_event_open
from apps.core.logging import get_logger
from apps.core.patches import Changes, MutationResult, apply_changes, diff_patch, require_changes
from apps.core.permissions import Action, enforce, load_actor
from apps.incidents.models import Event
from apps.incidents.services import load_visible_event, lock_event
from apps.resources.models import ResourceRequest

if TYPE_CHECKING:
    from apps.accounts.models import Professional
    from apps.resources.schemas import ResourcePatch

logger = get_logger(__name__)


@dataclass
class PriorityBreakdown:
    priority: str
    confirmed: bool
    count: int
    total_quantity: int


@dataclass
class ResourceSummary:
    """Request and quantity totals for one event."""

    event_id: UUID
    total_requests: int = 0
    confirmed_requests: int = 0
    pending_requests: int = 0
    critical_pending: int = 0
    high_pending: int = 0
    total_quantity: int = 0
    confirmed_quantity: int = 0
    by_priority: list[PriorityBreakdown] = field(default_factory=list)


def lock_request_and_event(request_id: Any) -> tuple[ResourceRequest, Event]:
    """
    Lock a resource request and its event, event first.

    Raises:
        NotFoundError: If the request does not exist.
    """
    event_id = (
        ResourceRequest.objects.filter(pk=request_id).values_list("event_id", flat=True).first()
    )
    if event_id is None:
        raise NotFoundError("Resource request not found")
    event = lock_event(event_id)
    try:
        resource = ResourceRequest.objects.select_for_update().get(pk=request_id)
    except ResourceRequest.DoesNotExist:
        raise NotFoundError("Resource request not found") from None
    return resource, event


def request_resource(
    actor: "Professional",
    event_id: Any,
    *,
    resource_name: str,
    quantity: int = 1,
    priority: str = Priority.MEDIUM,
    time_of_arrival: datetime | None = None,
    notes: str = "",
) -> ResourceRequest:
    """
    Raise a resource request in an open event.

    Raises:
        NotFoundError: Event does not exist.
        ForbiddenError: Actor is not in the event.
        EventClosedError: Event is finished or cancelled.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        event = lock_event(event_id)
        enforce(actor, Action.RESOURCE_REQUEST, event)
        ensure_event_open(event, f"Cannot request resources for a {event.status} event")

        resource = ResourceRequest.objects.create(
            event=event,
            resource_name=resource_name,
            quantity=quantity,
            priority=priority,
            time_of_arrival=time_of_arrival,
            notes=notes,
            created_by=actor,
            updated_by=actor,
        )
        record_change(
            resource, actor=actor, action="resource.requested", changes=created_changes(resource)
        )

    logger.info(
        "resource_requested",
        resource_id=str(resource.pk),
        event_id=str(event.pk),
        quantity=quantity,
        priority=priority,
    )
    return resource


def update_resource(
    actor: "Professional",
    request_id: Any,
    patch: "ResourcePatch",
) -> MutationResult[ResourceRequest]:
    """
    Edit a resource request.

    Raises:
        NotFoundError: Request does not exist.
        ForbiddenError: Actor is neither requester nor Commander.
        EventClosedError: Event is finished or cancelled.
        NoChangeError: Patch matches current state.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        resource, event = lock_request_and_event(request_id)
        enforce(actor, Action.RESOURCE_UPDATE, resource)
        ensure_event_open(event, f"Cannot modify resources of a {event.status} event")

        changes = diff_patch(resource, patch)
        require_changes(changes)
        changed = apply_changes(resource, changes, actor)
        record_change(resource, actor=actor, action="resource.updated", changes=changes)

    logger.info("resource_updated", resource_id=str(resource.pk), changed_fields=changed)
    return MutationResult(resource, changed)


def confirm_resource(
    actor: "Professional",
    request_id: Any,
    *,
    confirmed: bool,
    time_of_arrival: datetime | None = None,
) -> MutationResult[ResourceRequest]:
    """
    Confirm or unconfirm a resource request.

    Confirming records the actor and time; unconfirming clears them. An
    arrival time given with a confirmation replaces the current one.

    Raises:
        NotFoundError: Request does not exist.
        ForbiddenError: Actor is not in the event.
        EventClosedError: Event is finished or cancelled.
        NoChangeError: Already in the requested state.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        resource, event = lock_request_and_event(request_id)
        enforce(actor, Action.RESOURCE_CONFIRM, resource)
        ensure_event_open(event, f"Cannot confirm resources of a {event.status} event")

        changes: Changes = {}
        if resource.confirmed != confirmed:
            changes["confirmed"] = {"from": resource.confirmed, "to": confirmed}
            changes["confirmed_by_id"] = {
                "from": resource.confirmed_by_id,
                "to": actor.pk if confirmed else None,
            }
            changes["confirmed_at"] = {
                "from": resource.confirmed_at,
                "to": timezone.now() if confirmed else None,
            }
        if confirmed and time_of_arrival is not None and time_of_arrival != resource.time_of_arrival:
            changes["time_of_arrival"] = {"from": resource.time_of_arrival, "to": time_of_arrival}
        require_changes(changes)

        changed = apply_changes(resource, changes, actor)
        action = "resource.confirmed" if confirmed else "resource.unconfirmed"
        record_change(resource, actor=actor, action=action, changes=changes)

    logger.info("resource_confirmation_changed", resource_id=str(resource.pk), confirmed=confirmed)
    return MutationResult(resource, changed)


def delete_resource(actor: "Professional", request_id: Any) -> None:
    """
    Withdraw a resource request.

    Raises:
        NotFoundError: Request does not exist.
        ForbiddenError: Actor is neither requester nor Commander.
        EventClosedError: Event is finished or cancelled.
    """
    with transaction.atomic():
        actor = load_actor(actor)
        resource, event = lock_request_and_event(request_id)
        enforce(actor, Action.RESOURCE_DELETE, resource)
        ensure_event_open(event, f"Cannot delete resources of a {event.status} event")

        record_change(
            resource, actor=actor, action="resource.deleted", changes=deleted_changes(resource)
        )
        deleted_id = resource.pk
        resource.delete()

    logger.info("resource_deleted", resource_id=str(deleted_id))


def list_resources(
    actor: "Professional",
    event_id: Any,
    *,
    confirmed: bool | None = None,
    priority: str | None = None,
) -> list[ResourceRequest]:
    """
    Resource requests of an event: pending first, then by priority.

    Raises:
        NotFoundError: Event does not exist.
        ForbiddenError: Actor is not in the event.
    """
    event = load_visible_event(load_actor(actor), event_id)
    queryset = ResourceRequest.objects.filter(event=event)
    if confirmed is not None:
        queryset = queryset.filter(confirmed=confirmed)
    if priority is not None:
        queryset = queryset.filter(priority=priority)
    return list(queryset.by_priority())


def get_resource(actor: "Professional", request_id: Any) -> ResourceRequest:
    """
    Raises:
        NotFoundError: Request does not exist.
        ForbiddenError: Actor is neither requester nor in the event.
    """
    actor = load_actor(actor)
    resource = ResourceRequest.objects.filter(pk=request_id).first()
    if resource is None:
        raise NotFoundError("Resource request not found")
    enforce(actor, Action.RESOURCE_VIEW, resource)
    return resource


def resource_summary(actor: "Professional", event_id: Any) -> ResourceSummary:
    """
    Count and quantity totals for an event's resource requests.

    ``by_priority`` has one row per (priority, confirmed) pair that occurs,
    most urgent priority first and pending before confirmed.

    Raises:
        NotFoundError: Event does not exist.
        ForbiddenError: Actor is not in the event.
    """
    event = load_visible_event(load_actor(actor), event_id)
    queryset = ResourceRequest.objects.filter(event=event)
    pending = Q(confirmed=False)

    totals = queryset.aggregate(
        total_requests=Count("pk"),
        confirmed_requests=Count("pk", filter=Q(confirmed=True)),
        pending_requests=Count("pk", filter=pending),
        critical_pending=Count("pk", filter=pending & Q(priority=Priority.CRITICAL)),
        high_pending=Count("pk", filter=pending & Q(priority=Priority.HIGH)),
        total_quantity=Sum("quantity", default=0),
        confirmed_quantity=Sum("quantity", filter=Q(confirmed=True), default=0),
    )
    rows = (
        queryset.order_by()
        .values("priority", "confirmed")
        .annotate(count=Count("pk"), total_quantity=Sum("quantity"))
    )
    breakdown = sorted(
        (PriorityBreakdown(**row) for row in rows),
        key=lambda row: (PRIORITY_DISPLAY_ORDER.index(row.priority), row.confirmed),
    )
    return ResourceSummary(event_id=event.pk, by_priority=breakdown, **totals)

"""
Event API endpoints.

Event lifecycle, invite-code membership, and the per-event listings of
camps, casualties and resource requests.
"""

from dataclasses import asdict
from uuid import UUID

from django.conf import settings
from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.camps.schemas import CampResponse, CreateCampRequest
from apps.camps.services import create_camp, list_camps
from apps.casualties.schemas import CasualtyResponse
from apps.casualties.services import list_casualties
from apps.core.constants import EventStatus, Priority, TriageColor
from apps.core.schemas import ErrorResponse, MessageResponse
from apps.core.security import ProfessionalSessionAuth, get_actor
from apps.core.throttling import RateLimitExceeded, check_rate_limit
from apps.incidents.schemas import (
    CreateEventRequest,
    EventDeletionResponse,
    EventDetailResponse,
    EventMutationResponse,
    EventPatch,
    EventResponse,
    EventSummaryResponse,
    JoinEventRequest,
    JoinEventResponse,
    TransitionEventRequest,
)
from apps.incidents.services import (
    create_event,
    delete_event,
    get_event,
    join_event_by_code,
    leave_event,
    list_events,
    transition_event,
    update_event,
)
from apps.resources.schemas import ResourceRequestResponse, ResourceSummaryResponse
from apps.resources.services import list_resources, resource_summary

router = Router(tags=["events"], auth=ProfessionalSessionAuth())

ERRORS = {400: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse}


@router.post(
    "",
    response={201: EventResponse, **ERRORS},
    operation_id="createEvent",
    summary="Create an event",
)
def create_event_view(request: HttpRequest, payload: CreateEventRequest) -> tuple[int, EventResponse]:
    """Commander only. The creator is moved into the new event."""
    event = create_event(get_actor(request), **payload.model_dump())
    return 201, EventResponse.from_orm(event)


@router.get(
    "",
    response={200: list[EventSummaryResponse], **ERRORS},
    operation_id="listEvents",
    summary="List events",
)
def list_events_view(
    request: HttpRequest, status: EventStatus | None = None
) -> list[EventSummaryResponse]:
    """Commanders see every event; others see the event they are in."""
    events = list_events(get_actor(request), status=status)
    return [EventSummaryResponse.from_orm(e) for e in events]


@router.post(
    "/join",
    response={200: JoinEventResponse, 429: ErrorResponse, **ERRORS},
    operation_id="joinEvent",
    summary="Join an event by invite code",
)
def join_event_view(request: HttpRequest, payload: JoinEventRequest) -> JoinEventResponse:
    """Lookups are rate limited per professional to slow down code guessing."""
    actor = get_actor(request)
    try:
        check_rate_limit(
            f"join_event:{actor.pk}",
            max_requests=settings.JOIN_CODE_MAX_ATTEMPTS,
            window_seconds=settings.JOIN_CODE_WINDOW_SECONDS,
        )
    except RateLimitExceeded as e:
        raise HttpError(429, str(e)) from None

    result = join_event_by_code(actor, payload.invite_code, payload.camp_id)
    return JoinEventResponse(
        event=EventResponse.from_orm(result.event),
        camp_id=result.camp.pk if result.camp else None,
    )


@router.post(
    "/leave",
    response={200: MessageResponse, **ERRORS},
    operation_id="leaveEvent",
    summary="Leave the current event",
)
def leave_event_view(request: HttpRequest) -> MessageResponse:
    leave_event(get_actor(request))
    return MessageResponse(message="Left the event.")


@router.get(
    "/{event_id}",
    response={200: EventDetailResponse, **ERRORS},
    operation_id="getEvent",
    summary="Get an event with its camps",
)
def get_event_view(request: HttpRequest, event_id: UUID) -> EventDetailResponse:
    return EventDetailResponse.from_orm(get_event(get_actor(request), event_id))


@router.patch(
    "/{event_id}",
    response={200: EventMutationResponse, **ERRORS},
    operation_id="updateEvent",
    summary="Update event details",
)
def update_event_view(request: HttpRequest, event_id: UUID, payload: EventPatch) -> EventMutationResponse:
    result = update_event(get_actor(request), event_id, payload)
    return EventMutationResponse(
        event=EventResponse.from_orm(result.instance), changed_fields=result.changed_fields
    )


@router.post(
    "/{event_id}/transition",
    response={200: EventMutationResponse, **ERRORS},
    operation_id="transitionEvent",
    summary="Change event status",
)
def transition_event_view(
    request: HttpRequest, event_id: UUID, payload: TransitionEventRequest
) -> EventMutationResponse:
    result = transition_event(get_actor(request), event_id, payload.status)
    return EventMutationResponse(
        event=EventResponse.from_orm(result.instance), changed_fields=result.changed_fields
    )


@router.delete(
    "/{event_id}",
    response={200: EventDeletionResponse, **ERRORS},
    operation_id="deleteEvent",
    summary="Delete an event",
)
def delete_event_view(request: HttpRequest, event_id: UUID, force: bool = False) -> EventDeletionResponse:
    """Refused while the event still has camps, casualties, tasks or resources, unless forced."""
    result = delete_event(get_actor(request), event_id, force=force)
    return EventDeletionResponse(event_id=result.event_id, deleted_counts=result.deleted_counts)


@router.post(
    "/{event_id}/camps",
    response={201: CampResponse, **ERRORS},
    operation_id="createCamp",
    summary="Add a camp to an event",
)
def create_camp_view(
    request: HttpRequest, event_id: UUID, payload: CreateCampRequest
) -> tuple[int, CampResponse]:
    camp = create_camp(get_actor(request), event_id, **payload.model_dump())
    return 201, CampResponse.from_orm(camp)


@router.get(
    "/{event_id}/casualties",
    response={200: list[CasualtyResponse], **ERRORS},
    operation_id="listCasualties",
    summary="List casualties in triage order",
)
def list_casualties_view(
    request: HttpRequest, event_id: UUID, color: TriageColor | None = None
) -> list[CasualtyResponse]:
    casualties = list_casualties(get_actor(request), event_id, color=color)
    return [CasualtyResponse.from_orm(c) for c in casualties]


@router.get(
    "/{event_id}/camps",
    response={200: list[CampResponse], **ERRORS},
    operation_id="listCamps",
    summary="List camps with occupancy",
)
def list_camps_view(request: HttpRequest, event_id: UUID) -> list[CampResponse]:
    return [CampResponse.from_orm(c) for c in list_camps(get_actor(request), event_id)]


@router.get(
    "/{event_id}/resources",
    response={200: list[ResourceRequestResponse], **ERRORS},
    operation_id="listResources",
    summary="List resource requests, pending and most urgent first",
)
def list_resources_view(
    request: HttpRequest,
    event_id: UUID,
    confirmed: bool | None = None,
    priority: Priority | None = None,
) -> list[ResourceRequestResponse]:
    resources = list_resources(get_actor(request), event_id, confirmed=confirmed, priority=priority)
    return [ResourceRequestResponse.from_orm(r) for r in resources]


@router.get(
    "/{event_id}/resources/summary",
    response={200: ResourceSummaryResponse, **ERRORS},
    operation_id="resourceSummary",
    summary="Resource request totals for an event",
)
def resource_summary_view(request: HttpRequest, event_id: UUID) -> ResourceSummaryResponse:
    return ResourceSummaryResponse(**asdict(resource_summary(get_actor(request), event_id)))

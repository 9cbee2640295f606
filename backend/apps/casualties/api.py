"""
Casualty API endpoints.
"""

from uuid import UUID

from django.http import HttpRequest
from ninja import Router

from apps.audit.schemas import AuditEntryResponse
from apps.casualties.schemas import (
    AddCasualtyRequest,
    CasualtyMutationResponse,
    CasualtyPatch,
    CasualtyResponse,
)
from apps.casualties.services import add_casualty, delete_casualty, get_casualty_history, update_casualty_status
from apps.core.schemas import ErrorResponse, MessageResponse
from apps.core.security import ProfessionalSessionAuth, get_actor

router = Router(tags=["casualties"], auth=ProfessionalSessionAuth())

ERRORS = {400: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse}


@router.post(
    "",
    response={201: CasualtyResponse, **ERRORS},
    operation_id="addCasualty",
    summary="Register a casualty",
)
def add_casualty_view(request: HttpRequest, payload: AddCasualtyRequest) -> tuple[int, CasualtyResponse]:
    data = payload.model_dump()
    event_id = data.pop("event_id")
    casualty = add_casualty(get_actor(request), event_id, **data)
    return 201, CasualtyResponse.from_orm(casualty)


@router.patch(
    "/{casualty_id}",
    response={200: CasualtyMutationResponse, **ERRORS},
    operation_id="updateCasualty",
    summary="Update casualty status",
)
def update_casualty_view(
    request: HttpRequest, casualty_id: UUID, payload: CasualtyPatch
) -> CasualtyMutationResponse:
    """Only the fields sent are changed. Sending ``camp_id`` moves the casualty."""
    result = update_casualty_status(get_actor(request), casualty_id, payload)
    return CasualtyMutationResponse(
        casualty=CasualtyResponse.from_orm(result.instance), changed_fields=result.changed_fields
    )


@router.delete(
    "/{casualty_id}",
    response={200: MessageResponse, **ERRORS},
    operation_id="deleteCasualty",
    summary="Delete a casualty",
)
def delete_casualty_view(request: HttpRequest, casualty_id: UUID) -> MessageResponse:
    delete_casualty(get_actor(request), casualty_id)
    return MessageResponse(message="Casualty deleted.")


@router.get(
    "/{casualty_id}/history",
    response={200: list[AuditEntryResponse], **ERRORS},
    operation_id="getCasualtyHistory",
    summary="Casualty change history",
)
def casualty_history_view(request: HttpRequest, casualty_id: UUID) -> list[AuditEntryResponse]:
    entries = get_casualty_history(get_actor(request), casualty_id)
    return [AuditEntryResponse.from_orm(entry) for entry in entries]

"""
Camp API endpoints.

Camps are created and listed under their event (see the events router);
this router handles single-camp reads, edits, deletion and placement.
"""

from uuid import UUID

from django.http import HttpRequest
from ninja import Router

from apps.camps.schemas import (
    AssignmentResponse,
    AssignProfessionalRequest,
    CampDeletionResponse,
    CampMutationResponse,
    CampPatch,
    CampResponse,
)
from apps.camps.services import (
    assign_professional,
    delete_camp,
    get_camp,
    unassign_professional,
    update_camp,
)
from apps.core.schemas import ErrorResponse
from apps.core.security import ProfessionalSessionAuth, get_actor

router = Router(tags=["camps"], auth=ProfessionalSessionAuth())

ERRORS = {400: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse}


@router.post(
    "/unassign",
    response={200: AssignmentResponse, **ERRORS},
    operation_id="unassignProfessional",
    summary="Take a professional out of their camp",
)
def unassign_professional_view(request: HttpRequest, payload: AssignProfessionalRequest) -> AssignmentResponse:
    result = unassign_professional(get_actor(request), payload.professional_id)
    return AssignmentResponse(
        professional_id=result.instance.pk,
        camp_id=None,
        changed_fields=result.changed_fields,
    )


@router.get(
    "/{camp_id}",
    response={200: CampResponse, **ERRORS},
    operation_id="getCamp",
    summary="Get a camp with occupancy",
)
def get_camp_view(request: HttpRequest, camp_id: UUID) -> CampResponse:
    return CampResponse.from_orm(get_camp(get_actor(request), camp_id))


@router.patch(
    "/{camp_id}",
    response={200: CampMutationResponse, **ERRORS},
    operation_id="updateCamp",
    summary="Update a camp",
)
def update_camp_view(request: HttpRequest, camp_id: UUID, payload: CampPatch) -> CampMutationResponse:
    """Capacity cannot be reduced below the camp's current occupancy."""
    result = update_camp(get_actor(request), camp_id, payload)
    return CampMutationResponse(
        camp=CampResponse.from_orm(result.instance), changed_fields=result.changed_fields
    )


@router.delete(
    "/{camp_id}",
    response={200: CampDeletionResponse, **ERRORS},
    operation_id="deleteCamp",
    summary="Delete a camp",
)
def delete_camp_view(request: HttpRequest, camp_id: UUID, force: bool = False) -> CampDeletionResponse:
    result = delete_camp(get_actor(request), camp_id, force=force)
    return CampDeletionResponse(
        camp_id=result.camp_id,
        unassigned_professionals=result.unassigned_professionals,
        unassigned_casualties=result.unassigned_casualties,
    )


@router.post(
    "/{camp_id}/assign",
    response={200: AssignmentResponse, **ERRORS},
    operation_id="assignProfessional",
    summary="Place a professional in a camp",
)
def assign_professional_view(
    request: HttpRequest, camp_id: UUID, payload: AssignProfessionalRequest
) -> AssignmentResponse:
    """Without ``professional_id`` the caller places themselves."""
    result = assign_professional(get_actor(request), camp_id, payload.professional_id)
    return AssignmentResponse(
        professional_id=result.instance.pk,
        camp_id=result.instance.current_camp_id,
        changed_fields=result.changed_fields,
    )

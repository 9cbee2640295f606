"""
Resource request API endpoints.
"""

from uuid import UUID

from django.http import HttpRequest
from ninja import Router

from apps.core.schemas import ErrorResponse, MessageResponse
from apps.core.security import ProfessionalSessionAuth, get_actor
from apps.resources.schemas import (
    ConfirmResourceRequest,
    RequestResourceRequest,
    ResourceMutationResponse,
    ResourcePatch,
    ResourceRequestResponse,
)
from apps.resources.services import (
    confirm_resource,
    delete_resource,
    get_resource,
    request_resource,
    update_resource,
)

router = Router(tags=["resources"], auth=ProfessionalSessionAuth())

ERRORS = {400: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse}


def _mutation(result) -> ResourceMutationResponse:
    return ResourceMutationResponse(
        resource=ResourceRequestResponse.from_orm(result.instance),
        changed_fields=result.changed_fields,
    )


@router.post(
    "",
    response={201: ResourceRequestResponse, **ERRORS},
    operation_id="requestResource",
    summary="Request a resource",
)
def request_resource_view(
    request: HttpRequest, payload: RequestResourceRequest
) -> tuple[int, ResourceRequestResponse]:
    data = payload.model_dump()
    event_id = data.pop("event_id")
    resource = request_resource(get_actor(request), event_id, **data)
    return 201, ResourceRequestResponse.from_orm(resource)


@router.get(
    "/{request_id}",
    response={200: ResourceRequestResponse, **ERRORS},
    operation_id="getResource",
    summary="Get a resource request",
)
def get_resource_view(request: HttpRequest, request_id: UUID) -> ResourceRequestResponse:
    return ResourceRequestResponse.from_orm(get_resource(get_actor(request), request_id))


@router.patch(
    "/{request_id}",
    response={200: ResourceMutationResponse, **ERRORS},
    operation_id="updateResource",
    summary="Update a resource request",
)
def update_resource_view(
    request: HttpRequest, request_id: UUID, payload: ResourcePatch
) -> ResourceMutationResponse:
    return _mutation(update_resource(get_actor(request), request_id, payload))


@router.post(
    "/{request_id}/confirm",
    response={200: ResourceMutationResponse, **ERRORS},
    operation_id="confirmResource",
    summary="Confirm or unconfirm a resource request",
)
def confirm_resource_view(
    request: HttpRequest, request_id: UUID, payload: ConfirmResourceRequest
) -> ResourceMutationResponse:
    result = confirm_resource(
        get_actor(request),
        request_id,
        confirmed=payload.confirmed,
        time_of_arrival=payload.time_of_arrival,
    )
    return _mutation(result)


@router.delete(
    "/{request_id}",
    response={200: MessageResponse, **ERRORS},
    operation_id="deleteResource",
    summary="Withdraw a resource request",
)
def delete_resource_view(request: HttpRequest, request_id: UUID) -> MessageResponse:
    delete_resource(get_actor(request), request_id)
    return MessageResponse(message="Resource request deleted.")

"""
Group API endpoints.
"""

from uuid import UUID

from django.http import HttpRequest
from ninja import Router

from apps.core.schemas import ErrorResponse, MessageResponse
from apps.core.security import ProfessionalSessionAuth, get_actor
from apps.groups.schemas import (
    AddMemberRequest,
    CreateGroupRequest,
    GroupMutationResponse,
    GroupPatch,
    GroupResponse,
)
from apps.groups.services import (
    add_member,
    create_group,
    delete_group,
    get_group,
    list_groups,
    remove_member,
    update_group,
)

router = Router(tags=["groups"], auth=ProfessionalSessionAuth())

ERRORS = {400: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse}


@router.post(
    "",
    response={201: GroupResponse, **ERRORS},
    operation_id="createGroup",
    summary="Create a group",
)
def create_group_view(request: HttpRequest, payload: CreateGroupRequest) -> tuple[int, GroupResponse]:
    """The lead defaults to the caller; only Commanders may name someone else."""
    group = create_group(get_actor(request), **payload.model_dump())
    return 201, GroupResponse.from_orm(group)


@router.get(
    "",
    response={200: list[GroupResponse], **ERRORS},
    operation_id="listGroups",
    summary="List groups",
)
def list_groups_view(request: HttpRequest) -> list[GroupResponse]:
    return [GroupResponse.from_orm(g) for g in list_groups(get_actor(request))]


@router.get(
    "/{group_id}",
    response={200: GroupResponse, **ERRORS},
    operation_id="getGroup",
    summary="Get a group",
)
def get_group_view(request: HttpRequest, group_id: UUID) -> GroupResponse:
    return GroupResponse.from_orm(get_group(get_actor(request), group_id))


@router.patch(
    "/{group_id}",
    response={200: GroupMutationResponse, **ERRORS},
    operation_id="updateGroup",
    summary="Update a group",
)
def update_group_view(request: HttpRequest, group_id: UUID, payload: GroupPatch) -> GroupMutationResponse:
    result = update_group(get_actor(request), group_id, payload)
    return GroupMutationResponse(group=GroupResponse.from_orm(result.instance), changed_fields=result.changed_fields)


@router.post(
    "/{group_id}/members",
    response={200: GroupResponse, **ERRORS},
    operation_id="addGroupMember",
    summary="Add a member",
)
def add_member_view(request: HttpRequest, group_id: UUID, payload: AddMemberRequest) -> GroupResponse:
    group = add_member(get_actor(request), group_id, payload.professional_id)
    return GroupResponse.from_orm(group)


@router.delete(
    "/{group_id}/members/{professional_id}",
    response={200: GroupResponse, **ERRORS},
    operation_id="removeGroupMember",
    summary="Remove a member",
)
def remove_member_view(request: HttpRequest, group_id: UUID, professional_id: UUID) -> GroupResponse:
    group = remove_member(get_actor(request), group_id, professional_id)
    return GroupResponse.from_orm(group)


@router.delete(
    "/{group_id}",
    response={200: MessageResponse, **ERRORS},
    operation_id="deleteGroup",
    summary="Delete a group",
)
def delete_group_view(request: HttpRequest, group_id: UUID, force: bool = False) -> MessageResponse:
    delete_group(get_actor(request), group_id, force=force)
    return MessageResponse(message="Group deleted.")

"""
Task API endpoints.
"""

from uuid import UUID

from django.http import HttpRequest
from ninja import Router

from apps.core.constants import Priority, TaskStatus
from apps.core.schemas import ErrorResponse
from apps.core.security import ProfessionalSessionAuth, get_actor
from apps.tasks.schemas import CreateTaskRequest, TaskMutationResponse, TaskPatch, TaskResponse
from apps.tasks.services import cancel_task, create_task, get_task, list_tasks, update_task

router = Router(tags=["tasks"], auth=ProfessionalSessionAuth())

ERRORS = {400: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse}


@router.post(
    "",
    response={201: TaskResponse, **ERRORS},
    operation_id="createTask",
    summary="Create a task",
)
def create_task_view(request: HttpRequest, payload: CreateTaskRequest) -> tuple[int, TaskResponse]:
    data = payload.model_dump()
    event_id = data.pop("event_id")
    task = create_task(get_actor(request), event_id, **data)
    return 201, TaskResponse.from_orm(task)


@router.get(
    "",
    response={200: list[TaskResponse], **ERRORS},
    operation_id="listTasks",
    summary="List tasks, most urgent first",
)
def list_tasks_view(
    request: HttpRequest,
    event_id: UUID | None = None,
    assigned_to_id: UUID | None = None,
    status: TaskStatus | None = None,
    priority: Priority | None = None,
    mine: bool = False,
) -> list[TaskResponse]:
    """Non-Commanders only see tasks they created or are assigned to."""
    tasks = list_tasks(
        get_actor(request),
        event_id=event_id,
        assigned_to_id=assigned_to_id,
        status=status,
        priority=priority,
        mine=mine,
    )
    return [TaskResponse.from_orm(t) for t in tasks]


@router.get(
    "/{task_id}",
    response={200: TaskResponse, **ERRORS},
    operation_id="getTask",
    summary="Get a task",
)
def get_task_view(request: HttpRequest, task_id: UUID) -> TaskResponse:
    return TaskResponse.from_orm(get_task(get_actor(request), task_id))


@router.patch(
    "/{task_id}",
    response={200: TaskMutationResponse, **ERRORS},
    operation_id="updateTask",
    summary="Update a task",
)
def update_task_view(request: HttpRequest, task_id: UUID, payload: TaskPatch) -> TaskMutationResponse:
    """Status changes follow the task lifecycle; illegal moves answer 409."""
    result = update_task(get_actor(request), task_id, payload)
    return TaskMutationResponse(task=TaskResponse.from_orm(result.instance), changed_fields=result.changed_fields)


@router.post(
    "/{task_id}/cancel",
    response={200: TaskMutationResponse, **ERRORS},
    operation_id="cancelTask",
    summary="Cancel a task",
)
def cancel_task_view(request: HttpRequest, task_id: UUID) -> TaskMutationResponse:
    result = cancel_task(get_actor(request), task_id)
    return TaskMutationResponse(task=TaskResponse.from_orm(result.instance), changed_fields=result.changed_fields)

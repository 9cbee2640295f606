"""
Django Ninja API configuration.
"""

from django.http import HttpRequest, HttpResponse
from ninja import NinjaAPI

from apps.accounts.api import router as auth_router
from apps.camps.api import router as camps_router
from apps.casualties.api import router as casualties_router
from apps.core.exceptions import EngineError
from apps.core.logging import get_logger
from apps.groups.api import router as groups_router
from apps.incidents.api import router as events_router
from apps.resources.api import router as resources_router
from apps.tasks.api import router as tasks_router

logger = get_logger(__name__)

api = NinjaAPI(
    title="MCI Coordination API",
    version="1.0.0",
    description="Event, camp, casualty, task and resource coordination for mass casualty incidents.",
    openapi_extra={
        "info": {
            "contact": {"name": "API Support"},
        },
        "tags": [
            {"name": "auth", "description": "Session login and the current professional"},
            {"name": "events", "description": "Event lifecycle and invite-code membership"},
            {"name": "camps", "description": "Treatment camps and professional placement"},
            {"name": "casualties", "description": "Triaged casualties and their history"},
            {"name": "tasks", "description": "Task assignment and status"},
            {"name": "resources", "description": "Resource requests and confirmation"},
            {"name": "groups", "description": "Teams of professionals"},
            {"name": "health", "description": "Service health and readiness checks"},
        ],
    },
)

# Register routers
api.add_router("/auth", auth_router)
api.add_router("/events", events_router)
api.add_router("/camps", camps_router)
api.add_router("/casualties", casualties_router)
api.add_router("/tasks", tasks_router)
api.add_router("/resources", resources_router)
api.add_router("/groups", groups_router)


@api.exception_handler(EngineError)
def engine_error_handler(request: HttpRequest, exc: EngineError) -> HttpResponse:
    """Map domain errors to their HTTP status with a stable error code."""
    logger.info("request_rejected", code=exc.code, status_code=exc.status_code, detail=exc.message)
    return api.create_response(
        request,
        {"code": exc.code, "detail": exc.message},
        status=exc.status_code,
    )


@api.get("/health", tags=["health"], auth=None, operation_id="healthCheck", summary="Health check")
def health_check(request: HttpRequest) -> dict:
    """Health check endpoint for load balancer."""
    return {"status": "ok"}

"""
Core middleware.
"""

from collections.abc import Callable
from uuid import UUID

from django.http import HttpRequest, HttpResponse
from uuid6 import uuid7

from apps.core.logging import bind_contextvars, clear_contextvars

CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationIdMiddleware:
    """
    Assigns every request a correlation ID and binds log context.

    Reuses a valid UUID from the X-Correlation-ID header, otherwise generates
    one. The ID is set on ``request.correlation_id``, bound to structlog
    contextvars (audit entries copy it from there) and echoed in the response.
    Must run after AuthenticationMiddleware so the actor can be bound too.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        correlation_id = self._resolve(request.headers.get(CORRELATION_HEADER))
        request.correlation_id = correlation_id  # type: ignore[attr-defined]

        clear_contextvars()
        context = {
            "correlation_id": str(correlation_id),
            "http.method": request.method,
            "http.url_details.path": request.path,
        }
        user = getattr(request, "user", None)
        if user is not None and user.is_authenticated:
            context["actor.id"] = str(user.pk)
            context["actor.role"] = user.role
        bind_contextvars(**context)

        try:
            response = self.get_response(request)
        finally:
            clear_contextvars()

        response[CORRELATION_HEADER] = str(correlation_id)
        return response

    @staticmethod
    def _resolve(header_value: str | None) -> UUID:
        if header_value:
            try:
                return UUID(header_value)
            except ValueError:
                pass
        return uuid7()

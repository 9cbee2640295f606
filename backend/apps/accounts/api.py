"""
Auth API endpoints.

Session login/logout for professionals and the current-user profile.
"""

from django.contrib.auth import login, logout
from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.accounts.schemas import LoginRequest, ProfessionalResponse
from apps.accounts.services import authenticate_professional
from apps.core.schemas import ErrorResponse, MessageResponse
from apps.core.security import ProfessionalSessionAuth, get_actor
from apps.core.throttling import AttemptTracker, RateLimitExceeded

router = Router(tags=["auth"])
session_auth = ProfessionalSessionAuth()


@router.post(
    "/login",
    response={200: ProfessionalResponse, 401: ErrorResponse, 429: ErrorResponse},
    operation_id="login",
    summary="Log in with email and password",
)
def login_view(request: HttpRequest, payload: LoginRequest) -> ProfessionalResponse:
    """Start a session. Repeated failures lock the email out for a while."""
    tracker = AttemptTracker.from_settings()
    try:
        professional = authenticate_professional(payload.email, payload.password, tracker=tracker)
    except RateLimitExceeded as e:
        raise HttpError(429, str(e)) from None

    login(request, professional)
    return ProfessionalResponse.from_orm(professional)


@router.post(
    "/logout",
    response=MessageResponse,
    auth=session_auth,
    operation_id="logout",
    summary="End the current session",
)
def logout_view(request: HttpRequest) -> MessageResponse:
    logout(request)
    return MessageResponse(message="Logged out.")


@router.get(
    "/me",
    response=ProfessionalResponse,
    auth=session_auth,
    operation_id="getCurrentProfessional",
    summary="Current professional",
)
def get_current_professional(request: HttpRequest) -> ProfessionalResponse:
    return ProfessionalResponse.from_orm(get_actor(request))

"""
Core security - authentication classes for API.
"""

from django.http import HttpRequest
from ninja.security import SessionAuth

from apps.core.auth import AuthContext


class ProfessionalSessionAuth(SessionAuth):
    """
    Django session authentication yielding an AuthContext.

    Returns None for anonymous or inactive users, which makes ninja answer
    401. CSRF is enforced for unsafe methods, as with any session cookie.
    """

    def authenticate(self, request: HttpRequest, key: str | None) -> AuthContext | None:
        user = super().authenticate(request, key)
        if user is None or not user.is_active:
            return None
        return AuthContext(professional=user)


def get_actor(request: HttpRequest):
    """Return the acting Professional for an authenticated request."""
    auth = getattr(request, "auth", None)
    if auth is None:
        return AuthContext().require_auth()
    return auth.require_auth()

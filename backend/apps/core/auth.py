"""
Authentication context for request lifecycle.

Provides a typed container for authentication state that the session auth
class populates and endpoints consume.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ninja.errors import HttpError

if TYPE_CHECKING:
    from apps.accounts.models import Professional


@dataclass
class AuthContext:
    """
    Authentication context attached to requests as ``request.auth``.

    Attributes:
        professional: The authenticated Professional, or None
    """

    professional: "Professional | None" = None

    @property
    def is_authenticated(self) -> bool:
        return self.professional is not None

    def require_auth(self) -> "Professional":
        """
        Get the acting professional or raise 401.

        Raises:
            HttpError 401: If not authenticated
        """
        if self.professional is None:
            raise HttpError(401, "Not authenticated")
        return self.professional

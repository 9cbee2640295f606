"""
Accounts services - credential checks with lockout.
"""

from django.contrib.auth import authenticate

from apps.accounts.models import Professional
from apps.core.exceptions import EngineError
from apps.core.logging import get_logger
from apps.core.throttling import AttemptTracker

logger = get_logger(__name__)


class InvalidCredentialsError(EngineError):
    """Email/password pair did not match an active professional."""

    code = "invalid_credentials"
    status_code = 401

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


def login_attempt_key(email: str) -> str:
    return f"login:{email.strip().lower()}"


def authenticate_professional(
    email: str,
    password: str,
    *,
    tracker: AttemptTracker,
) -> Professional:
    """
    Verify credentials, counting failures per email.

    Args:
        email: Login email (case-insensitive for lockout purposes).
        password: Plain password, checked by Django's auth backends.
        tracker: Failure counter; locks the email after too many failures.

    Returns:
        The authenticated Professional.

    Raises:
        RateLimitExceeded: The email is locked out.
        InvalidCredentialsError: Credentials did not match.
    """
    key = login_attempt_key(email)
    tracker.check(key)

    professional = authenticate(username=email.strip(), password=password)
    if professional is None:
        tracker.record(key, success=False)
        logger.info("login_failed", failures=tracker.failures(key))
        raise InvalidCredentialsError()

    tracker.record(key, success=True)
    logger.info("login_succeeded", professional_id=str(professional.pk))
    return professional

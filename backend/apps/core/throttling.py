"""
Rate limiting and failed-attempt tracking backed by Django's cache.

Two tools live here:

``check_rate_limit`` counts every call to a bucket and rejects once the
window's allowance is used up. Used for invite-code lookups.

``AttemptTracker`` counts only failures and locks a key out after too many
of them; a success clears the key. Used for login. Create an instance and
pass it to whoever needs it rather than sharing a module-level one::

    tracker = AttemptTracker.from_settings()
    tracker.check(f"login:{email}")
    ...
    tracker.record(f"login:{email}", success=False)
"""

import time
from collections.abc import Callable

from django.conf import settings
from django.core.cache import BaseCache, cache

from apps.core.logging import get_logger

logger = get_logger(__name__)


class RateLimitExceeded(Exception):
    """Raised when a rate limit is exceeded."""

    def __init__(self, message: str, retry_after: int) -> None:
        super().__init__(message)
        self.retry_after = retry_after


def check_rate_limit(
    key: str,
    *,
    max_requests: int,
    window_seconds: int,
) -> None:
    """
    Check and increment a rate limit counter.

    Uses ``cache.add()`` + ``cache.incr()`` for near-atomic increments.
    ``add()`` is a no-op when the key exists.

    Args:
        key: Cache key identifying the rate limit bucket
            (e.g., "join_event:<professional id>").
        max_requests: Maximum allowed requests within the window.
        window_seconds: Time window in seconds.

    Raises:
        RateLimitExceeded: If the limit has been reached.
    """
    cache_key = f"rate_limit:{key}"

    cache.add(cache_key, 0, timeout=window_seconds)

    try:
        current = cache.incr(cache_key)
    except ValueError:
        # Key expired between add() and incr()
        cache.set(cache_key, 1, timeout=window_seconds)
        return

    if current > max_requests:
        logger.warning("rate_limit_exceeded", key=key, limit=max_requests, window=window_seconds)
        raise RateLimitExceeded(
            "Too many requests. Please try again later.",
            retry_after=window_seconds,
        )


class AttemptTracker:
    """
    Keyed failure counter with lockout.

    The window opens at the first failure for a key and lasts
    ``window_seconds``. Once ``max_attempts`` failures land in the window
    the key is locked until the window expires. Any success clears it.
    """

    def __init__(
        self,
        backend: BaseCache,
        *,
        max_attempts: int,
        window_seconds: int,
        prefix: str = "attempts",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.backend = backend
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.prefix = prefix
        self.clock = clock

    @classmethod
    def from_settings(cls, backend: BaseCache | None = None) -> "AttemptTracker":
        """Build a tracker using the login lockout settings."""
        return cls(
            backend if backend is not None else cache,
            max_attempts=settings.LOGIN_MAX_ATTEMPTS,
            window_seconds=settings.LOGIN_LOCKOUT_SECONDS,
            prefix="login_attempts",
        )

    def _count_key(self, key: str) -> str:
        return f"{self.prefix}:{key}:count"

    def _since_key(self, key: str) -> str:
        return f"{self.prefix}:{key}:since"

    def failures(self, key: str) -> int:
        return self.backend.get(self._count_key(key), 0)

    def check(self, key: str) -> None:
        """
        Reject the attempt if the key is locked out.

        Raises:
            RateLimitExceeded: With seconds left until the window expires.
        """
        if self.failures(key) < self.max_attempts:
            return

        since = self.backend.get(self._since_key(key))
        if since is None:
            retry_after = self.window_seconds
        else:
            retry_after = max(1, int(self.window_seconds - (self.clock() - since)))
        logger.warning("attempts_locked_out", key=key, retry_after=retry_after)
        raise RateLimitExceeded(
            f"Too many failed attempts. Try again in {-(-retry_after // 60)} minutes.",
            retry_after=retry_after,
        )

    def record(self, key: str, success: bool) -> None:
        """Record an attempt outcome. Success clears the key."""
        if success:
            self.reset(key)
            return

        count_key = self._count_key(key)
        # First failure opens the window; later failures do not extend it
        self.backend.add(self._since_key(key), self.clock(), timeout=self.window_seconds)
        self.backend.add(count_key, 0, timeout=self.window_seconds)
        try:
            count = self.backend.incr(count_key)
        except ValueError:
            self.backend.set(count_key, 1, timeout=self.window_seconds)
            count = 1
        logger.info("attempt_failed", key=key, failures=count, max_attempts=self.max_attempts)

    def reset(self, key: str) -> None:
        self.backend.delete_many([self._count_key(key), self._since_key(key)])

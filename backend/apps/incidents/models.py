"""
Incident models - events (real incidents or drills).
"""

import secrets
from typing import ClassVar

from django.db import models

from apps.core.constants import CLOSED_EVENT_STATUSES, EventStatus
from apps.core.models import TimestampedModel

# No 0/O or 1/I so codes survive being read out over a radio
INVITE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_CODE_LENGTH = 8


def generate_invite_code() -> str:
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def normalize_invite_code(code: str) -> str:
    return code.strip().upper()


class Event(TimestampedModel):
    """
    An incident or drill. Owns camps, casualties, tasks and resource requests.

    Status follows apps.core.lifecycle.EVENT_TRANSITIONS. Professionals join
    with ``invite_code``, which is stored upper-case and looked up
    case-insensitively.
    """

    AUDIT_ENTITY: ClassVar[str] = "event"
    AUDIT_FIELDS: ClassVar[tuple[str, ...]] = (
        "name",
        "location",
        "status",
        "start_time",
        "finish_time",
        "invite_code",
    )

    name = models.CharField(max_length=255)
    location = models.CharField(max_length=255, blank=True)
    status = models.CharField(
        max_length=20,
        choices=EventStatus.choices,
        default=EventStatus.UPCOMING,
        db_index=True,
    )
    start_time = models.DateTimeField(null=True, blank=True)
    finish_time = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Stamped on entering finished if not already set",
    )
    invite_code = models.CharField(
        max_length=16,
        unique=True,
        default=generate_invite_code,
        help_text="Join code, upper-case",
    )

    created_by = models.ForeignKey(
        "accounts.Professional",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    updated_by = models.ForeignKey(
        "accounts.Professional",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.name} ({self.status})"

    @property
    def is_closed(self) -> bool:
        return self.status in CLOSED_EVENT_STATUSES

"""
Resource request models - supplies and equipment asked for during an event.
"""

from typing import ClassVar

from django.db import models

from apps.core.constants import PRIORITY_DISPLAY_ORDER, Priority
from apps.core.models import EventScopedModel, display_rank


class ResourceRequestQuerySet(models.QuerySet):
    def by_priority(self) -> "ResourceRequestQuerySet":
        """Pending before confirmed, most urgent first, then newest."""
        return self.annotate(
            priority_rank=display_rank("priority", PRIORITY_DISPLAY_ORDER)
        ).order_by("confirmed", "priority_rank", "-created_at")


class ResourceRequest(EventScopedModel):
    """
    A request for resources in one event.

    ``created_by`` is the requester. Confirmation records who confirmed and
    when; unconfirming clears both.
    """

    AUDIT_ENTITY: ClassVar[str] = "resource"
    AUDIT_FIELDS: ClassVar[tuple[str, ...]] = (
        "event_id",
        "resource_name",
        "quantity",
        "priority",
        "time_of_arrival",
        "notes",
        "confirmed",
        "confirmed_by_id",
    )

    resource_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(default=1)
    priority = models.CharField(
        max_length=10,
        choices=Priority.choices,
        default=Priority.MEDIUM,
    )
    time_of_arrival = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    confirmed = models.BooleanField(default=False, db_index=True)
    confirmed_by = models.ForeignKey(
        "accounts.Professional",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    confirmed_at = models.DateTimeField(null=True, blank=True)

    objects = ResourceRequestQuerySet.as_manager()

    class Meta:
        ordering = ["confirmed", "-created_at"]

    def __str__(self) -> str:
        return f"{self.quantity} x {self.resource_name}"

    @property
    def requested_by_id(self):
        return self.created_by_id

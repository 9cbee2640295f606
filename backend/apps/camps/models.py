"""
Camp models - staging and treatment locations within an event.
"""

from typing import ClassVar

from django.db import models

from apps.core.models import EventScopedModel


class CampQuerySet(models.QuerySet):
    def with_occupancy(self) -> "CampQuerySet":
        """Annotate professional_count and casualty_count."""
        return self.annotate(
            professional_count=models.Count("professionals", distinct=True),
            casualty_count=models.Count("casualties", distinct=True),
        )


class Camp(EventScopedModel):
    """
    A location within one event.

    Occupancy (assigned professionals, casualties) is always counted from
    the rows pointing at the camp, never stored here.
    """

    AUDIT_ENTITY: ClassVar[str] = "camp"
    AUDIT_FIELDS: ClassVar[tuple[str, ...]] = ("event_id", "location_name", "capacity")

    location_name = models.CharField(max_length=255)
    capacity = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Maximum occupants; empty means unlimited",
    )

    objects = CampQuerySet.as_manager()

    class Meta:
        ordering = ["location_name"]

    def __str__(self) -> str:
        return self.location_name

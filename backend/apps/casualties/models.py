"""
Casualty models - triaged patients.
"""

from typing import ClassVar

from django.db import models

from apps.core.constants import TRIAGE_DISPLAY_ORDER, TriageColor
from apps.core.models import EventScopedModel, display_rank


class CasualtyQuerySet(models.QuerySet):
    def by_triage(self) -> "CasualtyQuerySet":
        """Red first, then yellow, green, black; newest first within a color."""
        return self.annotate(triage_rank=display_rank("color", TRIAGE_DISPLAY_ORDER)).order_by(
            "triage_rank", "-created_at"
        )


class Casualty(EventScopedModel):
    """
    An injured person in one event, optionally held at one of its camps.

    The booleans are nullable: None means "not assessed yet".
    """

    AUDIT_ENTITY: ClassVar[str] = "casualty"
    AUDIT_FIELDS: ClassVar[tuple[str, ...]] = (
        "event_id",
        "camp_id",
        "color",
        "breathing",
        "conscious",
        "bleeding",
        "hospital_status",
        "other_information",
    )

    camp = models.ForeignKey(
        "camps.Camp",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="casualties",
    )
    color = models.CharField(max_length=10, choices=TriageColor.choices, db_index=True)
    breathing = models.BooleanField(null=True, blank=True)
    conscious = models.BooleanField(null=True, blank=True)
    bleeding = models.BooleanField(null=True, blank=True)
    hospital_status = models.CharField(max_length=255, blank=True)
    other_information = models.TextField(blank=True)

    objects = CasualtyQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "casualties"

    def __str__(self) -> str:
        return f"Casualty {self.pk} ({self.color})"

"""
Group models - standing response teams with a lead and a size cap.
"""

from typing import ClassVar

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models.functions import Lower

from apps.core.models import TimestampedModel

MIN_GROUP_SIZE = 1
MAX_GROUP_SIZE = 50


class Group(TimestampedModel):
    """
    A team of professionals.

    Members are the professionals whose ``group`` points here; a
    professional belongs to at most one group. The lead is always one of
    the members. Names are unique ignoring case.
    """

    AUDIT_ENTITY: ClassVar[str] = "group"
    AUDIT_FIELDS: ClassVar[tuple[str, ...]] = ("name", "lead_id", "max_members")

    name = models.CharField(max_length=100)
    lead = models.ForeignKey(
        "accounts.Professional",
        on_delete=models.PROTECT,
        related_name="led_groups",
    )
    max_members = models.PositiveSmallIntegerField(
        default=10,
        validators=[MinValueValidator(MIN_GROUP_SIZE), MaxValueValidator(MAX_GROUP_SIZE)],
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
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(Lower("name"), name="groups_group_name_ci_unique"),
        ]

    def __str__(self) -> str:
        return self.name

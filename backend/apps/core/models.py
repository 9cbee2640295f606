"""
Core models - shared base classes.
"""

from collections.abc import Sequence

from django.db import models
from uuid6 import uuid7


def display_rank(field: str, order: Sequence[str]) -> models.Case:
    """Integer rank of ``field`` by its position in ``order``; other values sort last."""
    return models.Case(
        *[models.When(**{field: value}, then=models.Value(rank)) for rank, value in enumerate(order)],
        default=models.Value(len(order)),
        output_field=models.IntegerField(),
    )


class TimestampedModel(models.Model):
    """
    Abstract base model with a UUIDv7 primary key and timestamps.

    UUIDv7 keys sort by creation time, so indexes stay append-friendly.
    """

    id = models.UUIDField(primary_key=True, default=uuid7, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class EventScopedModel(TimestampedModel):
    """
    Abstract base model for everything owned by one Event.

    Provides:
    - event FK (cascade: dependents go when a force-deleted event goes)
    - created_by / updated_by audit columns
    - Timestamps from TimestampedModel

    Usage:
        class Casualty(EventScopedModel):
            color = models.CharField(max_length=10)
    """

    event = models.ForeignKey(
        "incidents.Event",
        on_delete=models.CASCADE,
        related_name="%(class)s_set",
    )
    created_by = models.ForeignKey(
        "accounts.Professional",
        on_delete=models.PROTECT,
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
        abstract = True

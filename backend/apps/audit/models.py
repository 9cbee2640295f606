"""
Audit models - append-only change history for every entity kind.
"""

from typing import Any

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from uuid6 import uuid7


class AuditLogQuerySet(models.QuerySet):
    """Queryset that refuses bulk modification."""

    def update(self, **kwargs: Any) -> int:
        raise TypeError("Audit log entries are immutable")

    def delete(self) -> tuple[int, dict[str, int]]:
        raise TypeError("Audit log entries cannot be deleted")

    def for_entity(self, entity_type: str, entity_id: Any) -> "AuditLogQuerySet":
        return self.filter(entity_type=entity_type, entity_id=str(entity_id))


class AuditLog(models.Model):
    """
    One committed change to one entity.

    ``changes`` always has the shape {field: {"from": old, "to": new}}.
    Creations have from=None for every field; deletions carry the full
    pre-delete snapshot with to=None. Rows are written once and never
    updated or deleted; there are deliberately no foreign keys so history
    survives deletion of the entity and the actor.
    """

    class EntityType(models.TextChoices):
        EVENT = "event", "Event"
        CAMP = "camp", "Camp"
        CASUALTY = "casualty", "Casualty"
        TASK = "task", "Task"
        GROUP = "group", "Group"
        RESOURCE = "resource", "Resource request"

    id = models.UUIDField(primary_key=True, default=uuid7, editable=False)

    # What happened
    entity_type = models.CharField(max_length=20, choices=EntityType.choices)
    entity_id = models.CharField(max_length=64)
    event_id = models.CharField(
        max_length=64,
        blank=True,
        db_index=True,
        help_text="Owning event, for per-incident history",
    )
    action = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Action tag, e.g. 'casualty.updated'",
    )

    # Who did it
    actor_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Professional ID, or 'system'",
    )
    actor_email = models.EmailField(blank=True, help_text="Denormalized for display")
    actor_role = models.CharField(max_length=32, blank=True)

    # Context
    correlation_id = models.CharField(
        max_length=64,
        blank=True,
        db_index=True,
        help_text="Request trace ID",
    )

    changes = models.JSONField(
        default=dict,
        blank=True,
        encoder=DjangoJSONEncoder,
        help_text="Field-level changes: {'field': {'from': ..., 'to': ...}}",
    )
    metadata = models.JSONField(
        default=dict,
        blank=True,
        encoder=DjangoJSONEncoder,
        help_text="Additional context (counts, reasons)",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["entity_type", "entity_id", "created_at"],
                name="audit_entity_history_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.entity_type}:{self.entity_id} by {self.actor_id}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            raise TypeError("Audit log entries are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args: Any, **kwargs: Any) -> tuple[int, dict[str, int]]:
        raise TypeError("Audit log entries cannot be deleted")

"""
Task models - work items assigned to professionals within an event.
"""

from typing import ClassVar

from django.db import models

from apps.core.constants import (
    CLOSED_TASK_STATUSES,
    PRIORITY_DISPLAY_ORDER,
    TASK_STATUS_DISPLAY_ORDER,
    Priority,
    TaskStatus,
)
from apps.core.models import EventScopedModel, display_rank


class TaskQuerySet(models.QuerySet):
    def by_priority(self) -> "TaskQuerySet":
        """Most urgent first, active before closed, then earliest due date."""
        return self.annotate(
            priority_rank=display_rank("priority", PRIORITY_DISPLAY_ORDER),
            status_rank=display_rank("status", TASK_STATUS_DISPLAY_ORDER),
        ).order_by(
            "priority_rank",
            "status_rank",
            models.F("due_date").asc(nulls_last=True),
            "-created_at",
        )


class Task(EventScopedModel):
    """
    A unit of work in an event.

    Status follows apps.core.lifecycle.TASK_TRANSITIONS. Tasks are never
    deleted; cancelling is a status change.
    """

    AUDIT_ENTITY: ClassVar[str] = "task"
    AUDIT_FIELDS: ClassVar[tuple[str, ...]] = (
        "event_id",
        "assigned_to_id",
        "description",
        "status",
        "priority",
        "due_date",
        "notes",
    )

    assigned_to = models.ForeignKey(
        "accounts.Professional",
        on_delete=models.PROTECT,
        related_name="assigned_tasks",
    )
    description = models.TextField()
    status = models.CharField(
        max_length=20,
        choices=TaskStatus.choices,
        default=TaskStatus.PENDING,
        db_index=True,
    )
    priority = models.CharField(
        max_length=10,
        choices=Priority.choices,
        default=Priority.MEDIUM,
    )
    due_date = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Stamped on entering completed, cleared on reopening",
    )

    objects = TaskQuerySet.as_manager()

    class Meta:
        ordering = ["due_date", "-created_at"]
        indexes = [
            models.Index(fields=["assigned_to", "status"], name="tasks_assignee_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.description[:40]} ({self.status})"

    @property
    def is_closed(self) -> bool:
        return self.status in CLOSED_TASK_STATUSES

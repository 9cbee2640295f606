"""
Shared choices used across the domain apps.
"""

from django.db import models


class Role(models.TextChoices):
    COMMANDER = "Commander", "Commander"
    MEDICAL_OFFICER = "Medical Officer", "Medical Officer"
    MERT_MEMBER = "MERT Member", "MERT Member"
    PARAMEDIC = "Paramedic", "Paramedic"
    NURSE = "Nurse", "Nurse"
    VOLUNTEER = "Volunteer", "Volunteer"


class EventStatus(models.TextChoices):
    UPCOMING = "upcoming", "Upcoming"
    IN_PROGRESS = "in_progress", "In progress"
    FINISHED = "finished", "Finished"
    CANCELLED = "cancelled", "Cancelled"


class TaskStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    IN_PROGRESS = "in_progress", "In progress"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class Priority(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    CRITICAL = "critical", "Critical"


class TriageColor(models.TextChoices):
    """Triage priority. Display order is red, yellow, green, black."""

    RED = "red", "Red (immediate)"
    YELLOW = "yellow", "Yellow (delayed)"
    GREEN = "green", "Green (minor)"
    BLACK = "black", "Black (deceased/expectant)"


TRIAGE_DISPLAY_ORDER = [
    TriageColor.RED,
    TriageColor.YELLOW,
    TriageColor.GREEN,
    TriageColor.BLACK,
]

PRIORITY_DISPLAY_ORDER = [
    Priority.CRITICAL,
    Priority.HIGH,
    Priority.MEDIUM,
    Priority.LOW,
]

# Active work first
TASK_STATUS_DISPLAY_ORDER = [
    TaskStatus.IN_PROGRESS,
    TaskStatus.PENDING,
    TaskStatus.COMPLETED,
    TaskStatus.CANCELLED,
]

CLOSED_EVENT_STATUSES = frozenset({EventStatus.FINISHED, EventStatus.CANCELLED})
CLOSED_TASK_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.CANCELLED})

# Statuses an event may be created in
INITIAL_EVENT_STATUSES = frozenset({EventStatus.UPCOMING, EventStatus.IN_PROGRESS})


class CampCapacityMode(models.TextChoices):
    SEPARATE = "separate", "Professionals and casualties capped independently"
    COMBINED = "combined", "Professionals and casualties share capacity"

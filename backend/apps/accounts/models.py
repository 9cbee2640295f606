"""
Accounts models - professionals and their current assignments.
"""

from typing import Any

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager
from django.db import models
from uuid6 import uuid7

from apps.core.constants import Role
from apps.core.exceptions import ConstraintViolationError

ASSIGNMENT_FIELDS = frozenset({"current_event", "current_event_id", "current_camp", "current_camp_id"})


class ProfessionalManager(BaseUserManager):
    """Custom manager for Professional model."""

    def create_user(
        self,
        email: str,
        password: str | None = None,
        **extra_fields: Any,
    ) -> "Professional":
        """Create and return a professional."""
        if not email:
            raise ValueError("Email is required")

        email = self.normalize_email(email)
        professional = self.model(email=email, **extra_fields)
        if password:
            professional.set_password(password)
        else:
            professional.set_unusable_password()
        professional.save(using=self._db)
        return professional

    def create_superuser(
        self,
        email: str,
        password: str | None = None,
        **extra_fields: Any,
    ) -> "Professional":
        """Create a Commander with staff access (for createsuperuser)."""
        extra_fields.setdefault("role", Role.COMMANDER)
        extra_fields.setdefault("is_staff", True)
        return self.create_user(email, password, **extra_fields)


class Professional(AbstractBaseUser):
    """
    A responder. This is AUTH_USER_MODEL.

    Holds at most one current event, one current camp and one group. Each is
    a single nullable FK, so joining something new replaces the old
    assignment instead of adding a second one. The camp must belong to the
    current event; ``save`` refuses anything else.
    """

    id = models.UUIDField(primary_key=True, default=uuid7, editable=False)

    email = models.EmailField(unique=True, db_index=True)
    name = models.CharField(max_length=255, blank=True)
    phone_number = models.CharField(max_length=32, blank=True)
    role = models.CharField(
        max_length=32,
        choices=Role.choices,
        default=Role.MERT_MEMBER,
        db_index=True,
    )

    # Current assignments
    current_event = models.ForeignKey(
        "incidents.Event",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="professionals",
        help_text="Event the professional is currently working",
    )
    current_camp = models.ForeignKey(
        "camps.Camp",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="professionals",
        help_text="Camp within current_event, if any",
    )
    group = models.ForeignKey(
        "groups.Group",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="members",
    )

    # Django auth compatibility
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProfessionalManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []  # Email is already required via USERNAME_FIELD

    class Meta:
        ordering = ["name", "email"]

    def __str__(self) -> str:
        return f"{self.name or self.email} ({self.role})"

    @property
    def is_commander(self) -> bool:
        return self.role == Role.COMMANDER

    def validate_assignment(self) -> None:
        """
        Check that current_camp belongs to current_event.

        Raises:
            ConstraintViolationError: If the camp is set and belongs to a
                different event, or the professional has no event.
        """
        if self.current_camp_id is None:
            return

        from apps.camps.models import Camp

        camp_event_id = (
            Camp.objects.filter(pk=self.current_camp_id).values_list("event_id", flat=True).first()
        )
        if camp_event_id is None or camp_event_id != self.current_event_id:
            raise ConstraintViolationError(
                "Camp does not belong to the professional's current event"
            )

    def save(self, *args: Any, **kwargs: Any) -> None:
        update_fields = kwargs.get("update_fields")
        if update_fields is None or ASSIGNMENT_FIELDS.intersection(update_fields):
            self.validate_assignment()
        super().save(*args, **kwargs)

"""Audit app configuration."""

from django.apps import AppConfig


class AuditConfig(AppConfig):
    """Configuration for audit app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.audit"

"""Casualties app configuration."""

from django.apps import AppConfig


class CasualtiesConfig(AppConfig):
    """Configuration for casualties app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.casualties"

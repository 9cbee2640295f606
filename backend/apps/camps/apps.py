"""Camps app configuration."""

from django.apps import AppConfig


class CampsConfig(AppConfig):
    """Configuration for camps app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.camps"

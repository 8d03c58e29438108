"""
Django app configuration for uploads.
"""

from django.apps import AppConfig


class UploadsConfig(AppConfig):
    """Uploads app configuration."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "uploads"
    verbose_name = "Uploads"

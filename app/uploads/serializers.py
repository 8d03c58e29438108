"""
Serializers for attachment uploads.
"""

from __future__ import annotations

from django.conf import settings
from rest_framework import serializers

from core.validators import validate_file_extension, validate_file_size
from uploads.constants import UPLOAD_CONFIG


class UploadSerializer(serializers.Serializer):
    """Multipart input for POST /api/upload."""

    file = serializers.FileField(help_text="File to attach to a message")

    def validate_file(self, value):
        validate_file_size(max_mb=settings.UPLOAD_MAX_SIZE_MB)(value)
        validate_file_extension(UPLOAD_CONFIG.ALLOWED_EXTENSIONS)(value)
        return value


class StoredFileSerializer(serializers.Serializer):
    """Descriptor of a stored file; same shape as a message attachment."""

    filename = serializers.CharField()
    path = serializers.CharField()
    mimetype = serializers.CharField()

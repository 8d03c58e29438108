"""
Reusable validators for uploaded files.

These validators are generic infrastructure; the uploads app decides the
actual limits.

Usage:
    from core.validators import validate_file_size, validate_file_extension

    file = serializers.FileField(
        validators=[validate_file_size(max_mb=10), validate_file_extension(["pdf", "txt"])]
    )
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError

if TYPE_CHECKING:
    from django.core.files import File


def validate_file_size(max_mb: int = 10):
    """
    Validator factory for file size limits.

    Args:
        max_mb: Maximum file size in megabytes

    Returns:
        Validator function
    """

    def validator(file: File):
        max_bytes = max_mb * 1024 * 1024
        if file.size > max_bytes:
            raise ValidationError(
                f"File size must be less than {max_mb}MB. "
                f"Current size: {file.size / 1024 / 1024:.1f}MB"
            )

    return validator


def validate_file_extension(allowed_extensions: list[str] | tuple[str, ...]):
    """
    Validator factory for file extension limits.

    Args:
        allowed_extensions: Allowed extensions, lower case, without dot

    Returns:
        Validator function
    """

    def validator(file: File):
        ext = os.path.splitext(file.name)[1].lower().lstrip(".")
        if ext not in allowed_extensions:
            raise ValidationError(
                f"File extension '{ext}' is not allowed. "
                f"Allowed: {', '.join(allowed_extensions)}"
            )

    return validator

"""
Storage of uploaded attachment files.

Files go through Django's default storage (FileSystemStorage under
MEDIA_ROOT unless configured otherwise). Stored names get a random
prefix so two uploads with the same name never collide. The MIME type
is read from the file header with python-magic; the extension only
fills in when the content says nothing specific.

Usage:
    from uploads.services import UploadService

    result = UploadService.store(request.FILES["file"])
    if result:
        descriptor = result.data  # {"filename", "path", "mimetype"}
"""

from __future__ import annotations

import logging
import mimetypes
import uuid
from typing import TYPE_CHECKING

import magic
from django.core.files.storage import default_storage
from django.utils.text import get_valid_filename

from core.services import BaseService, ServiceResult
from uploads.constants import UPLOAD_CONFIG

if TYPE_CHECKING:
    from django.core.files.uploadedfile import UploadedFile

logger = logging.getLogger(__name__)


class UploadService(BaseService):
    """Stores uploaded files and describes them for message attachments."""

    @classmethod
    def storage_name(cls, filename: str) -> str:
        """Random-prefixed, filesystem-safe name for an upload."""
        prefix = uuid.uuid4().hex[: UPLOAD_CONFIG.PREFIX_LENGTH]
        return f"{prefix}_{get_valid_filename(filename)}"

    @staticmethod
    def detect_mimetype(upload: UploadedFile) -> str | None:
        """MIME type read from the file header with libmagic, or None."""
        upload.seek(0)
        header = upload.read(UPLOAD_CONFIG.MAGIC_HEADER_BYTES)
        upload.seek(0)

        if not header:
            return None

        try:
            detected = magic.from_buffer(header, mime=True)
        except magic.MagicException as e:
            logger.warning(f"MIME detection failed for {upload.name!r}: {e}")
            return None

        if detected in UPLOAD_CONFIG.GENERIC_MIMETYPES:
            return None
        return detected

    @classmethod
    def guess_mimetype(cls, upload: UploadedFile) -> str:
        """
        MIME type of an upload.

        The file content decides. Extension and client-declared type are
        only used when libmagic finds nothing specific, or to refine a
        plain-text answer (markdown, csv, json all read as text/plain).
        """
        detected = cls.detect_mimetype(upload)
        guessed, _ = mimetypes.guess_type(upload.name)

        if detected == "text/plain" and guessed in UPLOAD_CONFIG.TEXT_MIMETYPES:
            return guessed
        if detected:
            return detected
        return guessed or upload.content_type or UPLOAD_CONFIG.DEFAULT_MIMETYPE

    @classmethod
    def store(cls, upload: UploadedFile) -> ServiceResult[dict]:
        """
        Save an upload.

        Returns:
            ServiceResult with {"filename", "path", "mimetype"}; ``path``
            is the public URL of the stored file

        Error codes:
            INTERNAL_ERROR: The storage backend failed
        """
        original_name = upload.name
        mimetype = cls.guess_mimetype(upload)

        try:
            stored_name = default_storage.save(cls.storage_name(original_name), upload)
        except OSError as e:
            return cls.handle_exception(e, "Failed to store file")

        cls.get_logger().info(f"Stored upload {original_name!r} as {stored_name}")

        return ServiceResult.success(
            {
                "filename": original_name,
                "path": default_storage.url(stored_name),
                "mimetype": mimetype,
            }
        )

"""
Tests for UploadService.
"""

from unittest.mock import patch

import magic
from django.core.files.uploadedfile import SimpleUploadedFile

from uploads.services import UploadService


class TestStorageName:
    def test_prefix_and_safe_name(self):
        name = UploadService.storage_name("my report (final).pdf")

        prefix, rest = name.split("_", 1)
        assert len(prefix) == 12
        assert rest == "my_report_final.pdf"


class TestGuessMimetype:
    def test_content_wins_over_extension(self, png_named_as_text):
        assert UploadService.guess_mimetype(png_named_as_text) == "image/png"

    def test_pdf_content(self):
        upload = SimpleUploadedFile("report.pdf", b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n", content_type="")

        assert UploadService.guess_mimetype(upload) == "application/pdf"

    def test_plain_text(self, text_file):
        assert UploadService.guess_mimetype(text_file) == "text/plain"

    def test_detection_leaves_file_at_start(self, png_named_as_text):
        UploadService.guess_mimetype(png_named_as_text)

        assert png_named_as_text.tell() == 0

    def test_empty_file_falls_back_to_extension(self):
        upload = SimpleUploadedFile("photo.png", b"", content_type="application/octet-stream")

        assert UploadService.guess_mimetype(upload) == "image/png"

    def test_falls_back_to_client_type(self):
        upload = SimpleUploadedFile("notes.unknownext", b"", content_type="text/x-custom")

        assert UploadService.guess_mimetype(upload) == "text/x-custom"

    def test_detection_failure_falls_back_to_extension(self):
        upload = SimpleUploadedFile("photo.png", b"\x00\x01", content_type="")

        with patch(
            "uploads.services.magic.from_buffer",
            side_effect=magic.MagicException("no magic database"),
        ):
            assert UploadService.guess_mimetype(upload) == "image/png"


class TestStore:
    def test_storage_failure_is_internal_error(self):
        upload = SimpleUploadedFile("a.txt", b"x", content_type="text/plain")

        with patch("uploads.services.default_storage.save", side_effect=OSError("disk full")):
            result = UploadService.store(upload)

        assert result.error == "Failed to store file"
        assert result.error_code == "INTERNAL_ERROR"

    def test_stores_whole_file_after_detection(self, media_root, png_named_as_text):
        result = UploadService.store(png_named_as_text)

        stored = media_root / result.data["path"].removeprefix("/media/")
        assert stored.read_bytes() == png_named_as_text.file.getvalue()
        assert result.data["mimetype"] == "image/png"

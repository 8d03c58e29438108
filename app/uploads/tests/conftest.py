"""
Test configuration and fixtures for upload tests.
"""

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    """Store uploads in a per-test directory."""
    settings.MEDIA_ROOT = tmp_path
    return tmp_path


@pytest.fixture
def text_file():
    return SimpleUploadedFile("meeting notes.txt", b"Decisions: ship it.", content_type="text/plain")


# Header of a 1x1 RGBA PNG
PNG_HEADER = (
    b"\x89PNG\r\n\x1a\n"
    b"\x00\x00\x00\rIHDR"
    b"\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00\x1f\x15\xc4\x89"
)


@pytest.fixture
def png_named_as_text():
    """PNG bytes behind a .txt name and a text/plain client type."""
    return SimpleUploadedFile("notes.txt", PNG_HEADER, content_type="text/plain")

"""
Constants for attachment uploads.

Import example:
    from uploads.constants import UPLOAD_CONFIG
"""

from typing import Final


class UPLOAD_CONFIG:
    """Accepted attachment files."""

    ALLOWED_EXTENSIONS: Final[tuple[str, ...]] = (
        # Images
        "jpg",
        "jpeg",
        "png",
        "gif",
        "webp",
        # Documents
        "pdf",
        "txt",
        "md",
        "csv",
        "json",
        "doc",
        "docx",
    )

    # Length of the random prefix that keeps stored names unique
    PREFIX_LENGTH: Final[int] = 12

    DEFAULT_MIMETYPE: Final[str] = "application/octet-stream"

    # Bytes read for content-based MIME detection
    MAGIC_HEADER_BYTES: Final[int] = 2048

    # libmagic answers that say nothing beyond "some bytes"
    GENERIC_MIMETYPES: Final[frozenset[str]] = frozenset(
        {"application/octet-stream", "application/x-empty"}
    )

    # Extension-derived types that refine a text/plain detection
    TEXT_MIMETYPES: Final[frozenset[str]] = frozenset(
        {"text/markdown", "text/csv", "application/json"}
    )

"""
Upload validation for employee documents.

Checks, in order: size limit, extension whitelist, declared MIME type
whitelist, and that the leading magic bytes agree with the declared type.

Usage in serializers:
    file = serializers.FileField(validators=[validate_upload])
"""

import logging
import mimetypes
import os

from django.conf import settings
from django.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

MAX_UPLOAD_SIZE_MB = getattr(settings, "MAX_UPLOAD_SIZE_MB", 10)
MAX_UPLOAD_SIZE_BYTES = MAX_UPLOAD_SIZE_MB * 1024 * 1024

ALLOWED_EXTENSIONS = getattr(settings, "ALLOWED_UPLOAD_EXTENSIONS", {
    ".pdf", ".doc", ".docx", ".txt",
    ".jpg", ".jpeg", ".png", ".gif", ".webp",
})

ALLOWED_MIME_TYPES = getattr(settings, "ALLOWED_UPLOAD_MIME_TYPES", {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
})

# signature -> expected MIME prefix
_MAGIC_BYTES = {
    b"\x89PNG": "image/png",
    b"\xff\xd8\xff": "image/jpeg",
    b"GIF8": "image/gif",
    b"%PDF": "application/pdf",
    b"PK": "application/",
    b"\xd0\xcf\x11": "application/",
    b"RIFF": "image/webp",
}


def guess_content_type(file_obj) -> str:
    content_type = getattr(file_obj, "content_type", None)
    if not content_type:
        content_type, _ = mimetypes.guess_type(getattr(file_obj, "name", "") or "")
    return content_type or "application/octet-stream"


def _magic_bytes_match(file_obj, content_type):
    file_obj.seek(0)
    header = file_obj.read(8)
    file_obj.seek(0)

    if not header:
        return False

    for magic, expected_prefix in _MAGIC_BYTES.items():
        if header.startswith(magic):
            return content_type.startswith(expected_prefix)

    # Unrecognised signature (plain text and the like)
    return True


def validate_upload(file_obj):
    size = getattr(file_obj, "size", None)
    if size is not None and size > MAX_UPLOAD_SIZE_BYTES:
        raise ValidationError(
            f"File too large. Maximum allowed size is {MAX_UPLOAD_SIZE_MB} MB."
        )

    name = getattr(file_obj, "name", "") or ""
    ext = os.path.splitext(name)[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError(
            f"File extension '{ext or '(none)'}' is not allowed. "
            f"Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )

    content_type = guess_content_type(file_obj)
    if content_type not in ALLOWED_MIME_TYPES:
        raise ValidationError(f"File type '{content_type}' is not allowed.")

    if hasattr(file_obj, "read") and not _magic_bytes_match(file_obj, content_type):
        logger.warning(
            "upload_magic_byte_mismatch file=%s content_type=%s", name, content_type,
        )
        raise ValidationError("File content does not match its declared type.")

    return file_obj

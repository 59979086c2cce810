"""Upload validation: size ceiling and content sniffing.

The format is decided from the payload's leading bytes, never from the
filename or the client's declared content type.
"""
from dataclasses import dataclass
from pathlib import Path

import filetype

from securepad.errors import InvalidFile, TooLarge

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# Detected media type -> extension used for the stored payload
ALLOWED_TYPES = {
    "application/pdf": ".pdf",
    "image/jpeg": ".jpg",
    "image/png": ".png",
    DOCX_MIME: ".docx",
}

# Bytes handed to the sniffer; every allowed signature sits well inside this
SNIFF_BYTES = 8192


@dataclass(frozen=True)
class DetectedType:
    media_type: str
    extension: str


def check_size(size: int, max_bytes: int) -> None:
    if size > max_bytes:
        raise TooLarge(f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.")
    if size == 0:
        raise InvalidFile("No file provided or file is empty")


def detect_type(payload: bytes, filename: str = "") -> DetectedType:
    """Identify an allowed format from magic bytes or raise InvalidFile.

    A DOCX is a ZIP container; when the sniffer only gets as far as
    "application/zip" the upload is accepted as DOCX if it was named .docx.
    """
    kind = filetype.guess(payload[:SNIFF_BYTES])
    if kind is None:
        raise InvalidFile()

    media_type = kind.mime
    if media_type == "application/zip" and Path(filename).suffix.lower() == ".docx":
        media_type = DOCX_MIME

    extension = ALLOWED_TYPES.get(media_type)
    if extension is None:
        raise InvalidFile()
    return DetectedType(media_type=media_type, extension=extension)


def validate_upload(payload: bytes, filename: str, max_bytes: int) -> DetectedType:
    """Size check first, then content sniffing. Nothing is stored before this passes."""
    check_size(len(payload), max_bytes)
    return detect_type(payload, filename)

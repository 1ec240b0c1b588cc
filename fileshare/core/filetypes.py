"""File-type rules shared by the server, the share page and the Python client."""

import os
import re
from enum import Enum
from typing import Optional

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
MAX_FILES = 5

# Declared MIME type -> extensions a browser would offer for it
ACCEPTED_FILE_TYPES = {
    "image/jpeg": [".jpg", ".jpeg"],
    "image/png": [".png"],
    "application/pdf": [".pdf"],
}

_IMAGE_SUFFIX = re.compile(r"\.(jpg|jpeg|png|gif|webp)$", re.IGNORECASE)
_PDF_SUFFIX = re.compile(r"\.pdf$", re.IGNORECASE)
_SAFE_EXTENSION = re.compile(r"^\.[a-z0-9]{1,16}$")


class FileKind(str, Enum):
    IMAGE = "image"
    PDF = "pdf"
    OTHER = "other"


def classify(filename: str) -> FileKind:
    """Classify a stored file purely by its name suffix (no content sniffing)."""
    if _IMAGE_SUFFIX.search(filename):
        return FileKind.IMAGE
    if _PDF_SUFFIX.search(filename):
        return FileKind.PDF
    return FileKind.OTHER


def extension_of(filename: Optional[str]) -> str:
    """Return the lower-cased extension (with the dot) or "" when unusable."""
    ext = os.path.splitext(filename or "")[1].lower()
    if not _SAFE_EXTENSION.match(ext):
        return ""
    return ext


def format_file_size(size: int) -> str:
    if size == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    i = 0
    value = float(size)
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {units[i]}"


def size_label(size: int) -> str:
    """Compact limit label for messages, e.g. "10MB"."""
    label = format_file_size(size)
    return label if label.endswith("Bytes") else label.replace(" ", "")

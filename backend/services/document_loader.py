"""Document loading and validation service."""
import logging
import os
from typing import Optional

from config import MAX_FILE_SIZE
from models.document import Document, DocumentKind, detect_document_kind

logger = logging.getLogger(__name__)

FILE_SIZE_UNITS = ["B", "KB", "MB", "GB"]
PAGE_SIZE_ESTIMATE = 100 * 1024  # average bytes per PDF page


class DocumentValidationError(ValueError):
    """Selected file is not acceptable for translation."""


class DocumentLoader:
    """Loads PDF or JSON files into validated Document objects."""

    def __init__(self, max_file_size: int = MAX_FILE_SIZE):
        """
        Initialize DocumentLoader.

        Args:
            max_file_size: Largest accepted file in bytes
        """
        self.max_file_size = max_file_size

    def load(self, filepath: str) -> Document:
        """
        Load a document from disk.

        Args:
            filepath: Path to a PDF or JSON file

        Returns:
            Validated Document

        Raises:
            DocumentValidationError: If the file is missing, empty, too large or unsupported
        """
        if not os.path.isfile(filepath):
            raise DocumentValidationError(f"File not found: {filepath}")

        with open(filepath, "rb") as handle:
            data = handle.read()

        return self.from_bytes(os.path.basename(filepath), data)

    def from_bytes(self, name: str, data: bytes, content_type: Optional[str] = None) -> Document:
        """Build a Document from an in-memory upload."""
        kind = detect_document_kind(name, content_type)

        if kind == DocumentKind.UNKNOWN:
            raise DocumentValidationError("File must be a PDF or JSON file")
        if len(data) == 0:
            raise DocumentValidationError("File cannot be empty")
        if len(data) > self.max_file_size:
            raise DocumentValidationError(
                f"File size must be less than {format_file_size(self.max_file_size)}"
            )

        logger.info(f"Loaded {name}: {kind.value}, {format_file_size(len(data))}")
        return Document(name=name, data=data, kind=kind)


def format_file_size(size_bytes: int) -> str:
    """Human-readable size, e.g. 1536 -> "1.5 KB"."""
    if size_bytes <= 0:
        return "0 B"
    index = 0
    scaled = float(size_bytes)
    while scaled >= 1024 and index < len(FILE_SIZE_UNITS) - 1:
        scaled /= 1024
        index += 1
    value = round(scaled, 1)
    if value == int(value):
        value = int(value)
    return f"{value} {FILE_SIZE_UNITS[index]}"


def estimate_page_count(size_bytes: int) -> str:
    """Rough page estimate for display before rendering."""
    pages = max(1, round(size_bytes / PAGE_SIZE_ESTIMATE))
    return f"~{pages} page{'s' if pages != 1 else ''}"

"""Document data models."""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Iterable, Optional, TypeVar

T = TypeVar("T")


class DocumentKind(str, Enum):
    """Detected document format."""
    PDF = "pdf"
    JSON = "json"
    UNKNOWN = "unknown"


_KIND_BY_CONTENT_TYPE = {
    "application/pdf": DocumentKind.PDF,
    "application/json": DocumentKind.JSON,
    "text/json": DocumentKind.JSON,
}

_KIND_BY_EXTENSION = {
    ".pdf": DocumentKind.PDF,
    ".json": DocumentKind.JSON,
}


def detect_document_kind(name: str, content_type: Optional[str] = None) -> DocumentKind:
    """Detect the document kind from its MIME type, falling back to the file extension."""
    if content_type:
        kind = _KIND_BY_CONTENT_TYPE.get(content_type.split(";")[0].strip().lower())
        if kind:
            return kind
    lowered = name.lower()
    for extension, kind in _KIND_BY_EXTENSION.items():
        if lowered.endswith(extension):
            return kind
    return DocumentKind.UNKNOWN


@dataclass(frozen=True)
class Document:
    """A selected file. Replaced wholesale, never patched."""
    name: str
    data: bytes
    kind: DocumentKind

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class PageImage:
    """Rendering of one page as a self-describing data URL."""
    page_number: int  # 1-indexed
    data_url: str
    is_placeholder: bool = False


@dataclass(frozen=True)
class ExtractionUnit(Generic[T]):
    """One unit submitted for extraction; sequence_number drives reassembly order."""
    sequence_number: int  # 1-indexed
    payload: T


@dataclass(frozen=True)
class ExtractedPage:
    """Extracted text for a single page."""
    page_number: int
    text: str


def format_page_separator(page_number: int) -> str:
    """Structural marker placed before each page's text."""
    return f"--- Page {page_number} ---"


def extraction_failure_text(page_number: int) -> str:
    """Sentinel text standing in for a page whose extraction failed."""
    return f"[Error extracting text from page {page_number}]"


def combine_pages(pages: Iterable[ExtractedPage]) -> str:
    """Join pages in page order, each preceded by its separator marker."""
    ordered = sorted(pages, key=lambda page: page.page_number)
    return "\n\n".join(
        f"{format_page_separator(page.page_number)}\n{page.text}" for page in ordered
    )

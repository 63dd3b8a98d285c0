"""Data models for Jade Translate."""
from .document import (
    Document,
    DocumentKind,
    ExtractedPage,
    ExtractionUnit,
    PageImage,
    combine_pages,
    detect_document_kind,
    extraction_failure_text,
    format_page_separator,
)
from .pipeline import LanguageDirection, PipelineStage, RunSnapshot, STAGE_PROGRESS, stage_progress
from .api import (
    ExtractRequest,
    ExtractRequestAdapter,
    ExtractTextResponse,
    JsonExtractRequest,
    PageText,
    PdfExtractRequest,
    TranslateRequest,
    TranslateResponse,
)

__all__ = [
    "Document",
    "DocumentKind",
    "ExtractedPage",
    "ExtractionUnit",
    "PageImage",
    "combine_pages",
    "detect_document_kind",
    "extraction_failure_text",
    "format_page_separator",
    "LanguageDirection",
    "PipelineStage",
    "RunSnapshot",
    "STAGE_PROGRESS",
    "stage_progress",
    "ExtractRequest",
    "ExtractRequestAdapter",
    "ExtractTextResponse",
    "JsonExtractRequest",
    "PageText",
    "PdfExtractRequest",
    "TranslateRequest",
    "TranslateResponse",
]

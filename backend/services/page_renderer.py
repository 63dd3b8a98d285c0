"""Page rendering service for PDF documents."""
import asyncio
import base64
import logging
from abc import ABC, abstractmethod

import fitz  # PyMuPDF

from config import RENDER_SCALE
from models.document import Document

logger = logging.getLogger(__name__)

# 1x1 transparent PNG standing in for a page that failed to render
PLACEHOLDER_IMAGE = (
    "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)


class PageRenderer(ABC):
    """Renders individual pages of a document to images."""

    @abstractmethod
    async def count_pages(self, document: Document) -> int:
        """Return the number of pages; raise if the document cannot be opened."""
        ...

    @abstractmethod
    async def render_page(self, document: Document, page_number: int, scale: float = RENDER_SCALE) -> str:
        """Render 1-indexed ``page_number`` and return it as a PNG data URL."""
        ...


class FitzPageRenderer(PageRenderer):
    """PyMuPDF-backed renderer; work runs in a thread to keep the event loop free."""

    async def count_pages(self, document: Document) -> int:
        return await asyncio.to_thread(self._count_pages, document.data)

    async def render_page(self, document: Document, page_number: int, scale: float = RENDER_SCALE) -> str:
        return await asyncio.to_thread(self._render_page, document.data, page_number, scale)

    @staticmethod
    def _count_pages(data: bytes) -> int:
        with fitz.open(stream=data, filetype="pdf") as pdf_document:
            return pdf_document.page_count

    @staticmethod
    def _render_page(data: bytes, page_number: int, scale: float) -> str:
        with fitz.open(stream=data, filetype="pdf") as pdf_document:
            if not 1 <= page_number <= pdf_document.page_count:
                raise IndexError(f"Page {page_number} out of range (1-{pdf_document.page_count})")

            page = pdf_document[page_number - 1]
            pixmap = page.get_pixmap(matrix=fitz.Matrix(scale, scale))
            png_bytes = pixmap.tobytes("png")

        logger.debug(
            f"Rendered page {page_number} at {pixmap.width}x{pixmap.height}",
            extra={"page_number": page_number}
        )
        return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")

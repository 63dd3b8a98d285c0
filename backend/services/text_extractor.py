"""Server-side text extraction for page images and structured documents."""
import json
import logging
from typing import List, Union

from models.api import ExtractTextResponse, JsonExtractRequest, PageText, PdfExtractRequest
from models.document import ExtractedPage, combine_pages, extraction_failure_text
from services.llm_client import LLMClient, LLMClientError

logger = logging.getLogger(__name__)


class InvalidDocumentError(ValueError):
    """Submitted content cannot be processed."""


class TextExtractor:
    """Turns extraction requests into per-page text using the vision model."""

    def __init__(self, llm_client: LLMClient):
        self.llm_client = llm_client

    async def extract(self, request: Union[PdfExtractRequest, JsonExtractRequest]) -> ExtractTextResponse:
        """
        Handle a tagged extraction request.

        Args:
            request: PDF image batch or JSON text blob

        Returns:
            ExtractTextResponse with one page record per input unit

        Raises:
            InvalidDocumentError: If the JSON content does not parse
        """
        if isinstance(request, PdfExtractRequest):
            logger.info(f"Starting text extraction for: {request.file_name} ({len(request.images)} images)")
            pages = await self.extract_pages(request.images, request.start_page_number)
            file_type = "pdf"
        elif isinstance(request, JsonExtractRequest):
            logger.info(f"Starting JSON extraction for: {request.file_name}")
            pages = self.extract_json(request.content)
            file_type = "json"
        else:
            raise TypeError(f"Unsupported extraction request: {type(request).__name__}")

        combined = combine_pages(pages) if file_type == "pdf" else pages[0].text
        logger.info(f"Extraction completed for {request.file_name}: {len(combined)} characters")

        return ExtractTextResponse(
            success=True,
            extracted_text=combined,
            page_count=len(pages),
            pages=[PageText(page_number=p.page_number, text=p.text) for p in pages],
            file_type=file_type,
        )

    async def extract_pages(self, images: List[str], start_page_number: int = 1) -> List[ExtractedPage]:
        """
        Extract text from each image in order.

        A page whose extraction fails still yields a record carrying sentinel text,
        so the output length always equals the input length.
        """
        pages: List[ExtractedPage] = []

        for offset, image in enumerate(images):
            page_number = start_page_number + offset
            try:
                response = await self.llm_client.extract_text_from_image(image)
                pages.append(ExtractedPage(page_number=page_number, text=response.text))
                logger.info(
                    f"Page {page_number} processed successfully ({len(response.text)} characters)",
                    extra={"page_number": page_number}
                )
            except LLMClientError as e:
                logger.error(
                    f"Error processing page {page_number}: {e.error.message}",
                    extra={"page_number": page_number}
                )
                pages.append(ExtractedPage(page_number=page_number, text=extraction_failure_text(page_number)))

        return pages

    @staticmethod
    def extract_json(content: str) -> List[ExtractedPage]:
        """Validate a JSON blob and return it as a single page."""
        try:
            json.loads(content)
        except json.JSONDecodeError as e:
            raise InvalidDocumentError(f"Invalid JSON format: {e.msg} (line {e.lineno}, column {e.colno})")
        return [ExtractedPage(page_number=1, text=content)]

"""Unit tests for the TextExtractor service."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import asyncio
import pytest
from unittest.mock import AsyncMock, Mock
from models.api import JsonExtractRequest, PdfExtractRequest
from services.llm_client import LLMClientError, LLMError, LLMResponse
from services.text_extractor import InvalidDocumentError, TextExtractor


def vision_response(text):
    return LLMResponse(text=text, tokens_input=1, tokens_output=1, latency_ms=1, model_used="vision")


def vision_failure():
    return LLMClientError(LLMError(code="UPSTREAM_UNAVAILABLE", message="Vision model unavailable", details={}))


class TestTextExtractor:
    """Test suite for TextExtractor."""

    def test_pdf_batch_numbers_pages_from_start(self):
        """Test page numbers continue from the batch's starting page."""
        client = Mock()
        client.extract_text_from_image = AsyncMock(side_effect=[vision_response("Four"), vision_response("Five")])
        extractor = TextExtractor(client)

        response = asyncio.run(extractor.extract(PdfExtractRequest(
            images=["data:image/png;base64,A", "data:image/png;base64,B"],
            file_name="report.pdf (batch 2)",
            start_page_number=4
        )))

        assert response.success
        assert response.page_count == 2
        assert response.file_type == "pdf"
        assert [p.page_number for p in response.pages] == [4, 5]
        assert response.extracted_text == "--- Page 4 ---\nFour\n\n--- Page 5 ---\nFive"

    def test_failed_page_gets_sentinel_text(self):
        """Test a page whose extraction fails is kept with sentinel text."""
        client = Mock()
        client.extract_text_from_image = AsyncMock(side_effect=[
            vision_response("One"), vision_failure(), vision_response("Three")
        ])
        extractor = TextExtractor(client)

        pages = asyncio.run(extractor.extract_pages(["a", "b", "c"], start_page_number=1))

        assert len(pages) == 3
        assert pages[1].page_number == 2
        assert pages[1].text == "[Error extracting text from page 2]"
        assert pages[2].text == "Three"

    def test_json_is_returned_as_single_unit(self):
        """Test a JSON request yields exactly one page carrying the content unchanged."""
        client = Mock()
        client.extract_text_from_image = AsyncMock()
        extractor = TextExtractor(client)
        content = '{"greeting": "Hello", "nested": {"count": 2}}'

        response = asyncio.run(extractor.extract(JsonExtractRequest(content=content, file_name="strings.json")))

        assert response.page_count == 1
        assert response.file_type == "json"
        assert response.extracted_text == content
        assert response.pages[0].page_number == 1
        client.extract_text_from_image.assert_not_awaited()

    def test_invalid_json_raises(self):
        """Test malformed JSON is rejected with a descriptive error."""
        with pytest.raises(InvalidDocumentError, match="Invalid JSON format"):
            TextExtractor.extract_json('{"broken": ')

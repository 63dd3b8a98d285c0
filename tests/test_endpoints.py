"""Tests for the extraction and translation endpoints."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from unittest.mock import AsyncMock, Mock, patch
from fastapi.testclient import TestClient

import main
from services.llm_client import LLMClientError, LLMError, LLMResponse


def llm_response(text):
    return LLMResponse(text=text, tokens_input=1, tokens_output=1, latency_ms=1, model_used="m")


@pytest.fixture
def mock_llm():
    """Install a mocked LLM client behind fresh service instances."""
    client = Mock()
    client.extract_text_from_image = AsyncMock(return_value=llm_response("Page text"))
    client.generate = AsyncMock(return_value=llm_response("你好"))
    with patch.object(main, "llm_client", client), \
            patch.object(main, "text_extractor", None), \
            patch.object(main, "translator", None):
        yield client


@pytest.fixture
def client():
    return TestClient(main.app)


class TestExtractTextEndpoint:
    """Test suite for POST /api/extract-text."""

    def test_pdf_batch(self, client, mock_llm):
        response = client.post("/api/extract-text", json={
            "type": "pdf",
            "images": ["data:image/png;base64,A", "data:image/png;base64,B"],
            "fileName": "report.pdf",
            "startPageNumber": 3,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["pageCount"] == 2
        assert data["fileType"] == "pdf"
        assert [p["pageNumber"] for p in data["pages"]] == [3, 4]
        assert data["extractedText"].startswith("--- Page 3 ---\nPage text")
        assert "error" not in data

    def test_failed_page_keeps_its_slot(self, client, mock_llm):
        mock_llm.extract_text_from_image.side_effect = [
            LLMClientError(LLMError(code="UPSTREAM_UNAVAILABLE", message="down", details={})),
            llm_response("Second"),
        ]

        response = client.post("/api/extract-text", json={
            "type": "pdf", "images": ["a", "b"], "fileName": "report.pdf",
        })

        data = response.json()
        assert response.status_code == 200
        assert data["pages"][0]["text"] == "[Error extracting text from page 1]"
        assert data["pages"][1]["text"] == "Second"

    def test_json_document(self, client, mock_llm):
        response = client.post("/api/extract-text", json={
            "type": "json", "content": '{"title": "Hello"}', "fileName": "strings.json",
        })

        data = response.json()
        assert response.status_code == 200
        assert data["pageCount"] == 1
        assert data["extractedText"] == '{"title": "Hello"}'
        mock_llm.extract_text_from_image.assert_not_awaited()

    def test_invalid_json_content_is_rejected(self, client, mock_llm):
        response = client.post("/api/extract-text", json={
            "type": "json", "content": "{not json", "fileName": "broken.json",
        })

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "Invalid JSON format" in response.json()["error"]

    def test_unknown_type_is_rejected(self, client, mock_llm):
        response = client.post("/api/extract-text", json={"type": "docx", "fileName": "a.docx"})

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_non_json_body_is_rejected(self, client, mock_llm):
        response = client.post("/api/extract-text", content=b"not json",
                               headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.json()["error"] == "Request body must be valid JSON"

    def test_missing_api_key_is_a_server_error(self, client):
        with patch.object(main, "llm_client", None), \
                patch.object(main, "text_extractor", None), \
                patch("services.llm_client.GROQ_API_KEY", None):
            response = client.post("/api/extract-text", json={
                "type": "pdf", "images": ["a"], "fileName": "report.pdf",
            })

        assert response.status_code == 500
        assert "GROQ_API_KEY" in response.json()["error"]


class TestTranslateEndpoint:
    """Test suite for POST /api/translate."""

    def test_translate_success(self, client, mock_llm):
        response = client.post("/api/translate", json={
            "text": "Hello", "sourceLanguage": "en", "targetLanguage": "zh", "model": "kimi-k2",
        })

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "translatedText": "你好",
            "sourceLanguage": "en",
            "targetLanguage": "zh",
            "model": "kimi-k2",
        }

    def test_same_languages_rejected(self, client, mock_llm):
        response = client.post("/api/translate", json={
            "text": "Hello", "sourceLanguage": "zh", "targetLanguage": "zh", "model": "kimi-k2",
        })

        assert response.status_code == 400
        assert "cannot be the same" in response.json()["error"]
        mock_llm.generate.assert_not_awaited()

    def test_unknown_model_rejected(self, client, mock_llm):
        response = client.post("/api/translate", json={
            "text": "Hello", "sourceLanguage": "en", "targetLanguage": "zh", "model": "gpt-4",
        })

        assert response.status_code == 400
        assert "Unsupported model" in response.json()["error"]

    def test_missing_fields_rejected(self, client, mock_llm):
        response = client.post("/api/translate", json={"text": "Hello"})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid request")

    def test_upstream_failure_names_model(self, client, mock_llm):
        mock_llm.generate.side_effect = LLMClientError(
            LLMError(code="UPSTREAM_STATUS_ERROR", message="Groq API error: 500 - boom", details={})
        )

        response = client.post("/api/translate", json={
            "text": "Hello", "sourceLanguage": "en", "targetLanguage": "zh", "model": "kimi-k2",
        })

        assert response.status_code == 500
        assert response.json()["error"].startswith("Translation failed with kimi-k2")

    def test_empty_translation_is_a_failure(self, client, mock_llm):
        mock_llm.generate.return_value = llm_response("   ")

        response = client.post("/api/translate", json={
            "text": "Hello", "sourceLanguage": "en", "targetLanguage": "zh", "model": "kimi-k2",
        })

        assert response.status_code == 500
        assert response.json()["success"] is False


class TestInfoEndpoints:
    """Test suite for health and model listing."""

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"

    def test_models(self, client):
        data = client.get("/api/models").json()

        assert "kimi-k2" in data["models"]
        assert data["default"] in data["models"]

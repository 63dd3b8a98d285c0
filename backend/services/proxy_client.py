"""HTTP clients for the extraction and translation endpoints."""
import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from config import API_BASE_URL, HTTP_TIMEOUT
from models.api import (
    ExtractTextResponse,
    JsonExtractRequest,
    PdfExtractRequest,
    TranslateRequest,
    TranslateResponse,
)
from services.retry_policy import RetryExhaustedError, RetryPolicy, run_with_retry
from services.translator import LANGUAGE_NAMES, TranslationValidationError

logger = logging.getLogger(__name__)

EXTRACT_PATH = "/api/extract-text"
TRANSLATE_PATH = "/api/translate"


class ProxyError(Exception):
    """A proxy call failed; the message is safe to show to the user."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ExtractionProxyError(ProxyError):
    """Extraction call failed."""


class TranslationProxyError(ProxyError):
    """Translation call failed."""


def _error_detail(response: httpx.Response) -> str:
    """Pull the contract ``error`` field out of a failed response, else its raw body."""
    try:
        payload = response.json()
    except ValueError:
        return response.text[:500]
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return response.text[:500]


class _ProxyClient:
    """Shared httpx plumbing for the proxy clients."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = HTTP_TIMEOUT
    ):
        self.base_url = base_url.rstrip("/")
        self._http_client = http_client
        self._owns_client = http_client is None
        self.timeout = timeout

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self._http_client

    async def aclose(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()


class ExtractionProxyClient(_ProxyClient):
    """Client for POST /api/extract-text with transient-error retries."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = HTTP_TIMEOUT
    ):
        super().__init__(base_url, http_client, timeout)
        self.retry_policy = retry_policy or RetryPolicy()

    async def extract_pdf_batch(
        self,
        images: List[str],
        file_name: str,
        start_page_number: int = 1
    ) -> ExtractTextResponse:
        """Submit a batch of page images starting at ``start_page_number``."""
        request = PdfExtractRequest(
            images=images,
            file_name=file_name,
            start_page_number=start_page_number
        )
        return await self._submit(request)

    async def extract_json(self, content: str, file_name: str) -> ExtractTextResponse:
        """Submit a whole JSON document as one extraction unit."""
        return await self._submit(JsonExtractRequest(content=content, file_name=file_name))

    async def _submit(self, request) -> ExtractTextResponse:
        payload = request.to_wire()

        async def post(attempt: int) -> httpx.Response:
            logger.debug(f"POST {EXTRACT_PATH} attempt {attempt} for {request.file_name}", extra={"attempt": attempt})
            try:
                return await self.http_client.post(f"{self.base_url}{EXTRACT_PATH}", json=payload)
            except httpx.TimeoutException:
                raise ExtractionProxyError(f"Extraction request timed out after {self.timeout}s")
            except httpx.RequestError as e:
                raise ExtractionProxyError(f"Network error: {str(e)}")

        try:
            response = await run_with_retry(post, self.retry_policy, lambda r: r.status_code)
        except RetryExhaustedError as e:
            raise ExtractionProxyError(
                f"Extraction service unavailable after {e.attempts} attempts "
                f"(status {e.last_status})",
                status_code=e.last_status
            )

        if not response.is_success:
            raise ExtractionProxyError(
                f"HTTP error! status: {response.status_code} - {_error_detail(response)}",
                status_code=response.status_code
            )

        try:
            result = ExtractTextResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ExtractionProxyError(f"Malformed extraction response: {e}")

        if not result.success:
            raise ExtractionProxyError(result.error or "Text extraction failed")
        return result


class TranslationProxyClient(_ProxyClient):
    """Client for POST /api/translate."""

    @staticmethod
    def validate(text: str, source_language: str, target_language: str) -> None:
        """Reject requests locally; nothing invalid is ever sent over the network."""
        if not text or not text.strip():
            raise TranslationValidationError("Text is required")
        for language in (source_language, target_language):
            if language not in LANGUAGE_NAMES:
                raise TranslationValidationError(f"Unsupported language: {language}")
        if source_language == target_language:
            raise TranslationValidationError("Source and target languages cannot be the same")

    async def translate(
        self,
        text: str,
        source_language: str,
        target_language: str,
        model: str
    ) -> TranslateResponse:
        """
        Translate text through the proxy.

        Raises:
            TranslationValidationError: Before any network call, on invalid input
            TranslationProxyError: On HTTP failure, success=false or a blank result
        """
        self.validate(text, source_language, target_language)

        request = TranslateRequest(
            text=text,
            source_language=source_language,
            target_language=target_language,
            model=model
        )

        try:
            response = await self.http_client.post(f"{self.base_url}{TRANSLATE_PATH}", json=request.to_wire())
        except httpx.TimeoutException:
            raise TranslationProxyError(f"Translation request timed out after {self.timeout}s")
        except httpx.RequestError as e:
            raise TranslationProxyError(f"Network error: {str(e)}")

        if not response.is_success:
            raise TranslationProxyError(
                _error_detail(response) or f"Translation failed with status {response.status_code}",
                status_code=response.status_code
            )

        try:
            result = TranslateResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise TranslationProxyError(f"Malformed translation response: {e}")

        if not result.success:
            raise TranslationProxyError(result.error or "Translation failed")
        if not result.translated_text.strip():
            raise TranslationProxyError("Empty translation response from model")
        return result

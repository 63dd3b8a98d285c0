"""LLM Client for Groq API integration."""
import time
from dataclasses import dataclass
from typing import List, Optional, Dict, Any, Union
from groq import AsyncGroq
from groq import RateLimitError, AuthenticationError, APIError, APIStatusError, APITimeoutError
import logging

from config import GROQ_API_KEY, VISION_MODEL, VISION_MAX_TOKENS, VISION_TEMPERATURE, TOP_P
from services.retry_policy import RetryPolicy, RetryExhaustedError, run_with_retry

logger = logging.getLogger(__name__)

VISION_INSTRUCTION = (
    "Please extract all text from this image. Return only the extracted text content, "
    "preserving the original formatting and structure as much as possible. "
    "Do not add any explanations or comments."
)


@dataclass
class LLMResponse:
    """Response from LLM generation."""
    text: str
    tokens_input: int
    tokens_output: int
    latency_ms: int
    model_used: str


@dataclass
class LLMError:
    """Structured error response from LLM operations."""
    code: str
    message: str
    details: Dict[str, Any]


class LLMClientError(Exception):
    """Custom exception for LLM client errors with structured error information."""

    def __init__(self, error: LLMError):
        self.error = error
        super().__init__(error.message)

    @property
    def status_code(self) -> Optional[int]:
        return self.error.details.get("status_code")


class LLMClient:
    """Client for interfacing with Groq API for vision extraction and translation."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        vision_model: str = VISION_MODEL,
        retry_policy: Optional[RetryPolicy] = None
    ):
        """
        Initialize LLM client with Groq API key.

        Args:
            api_key: Groq API key (defaults to GROQ_API_KEY from environment)
            vision_model: Vision-capable model used for text extraction
            retry_policy: Retry policy for transient upstream errors
        """
        self.api_key = api_key or GROQ_API_KEY
        if not self.api_key:
            raise ValueError("GROQ_API_KEY environment variable is not set")

        self.vision_model = vision_model
        self.retry_policy = retry_policy or RetryPolicy()
        self.client = AsyncGroq(api_key=self.api_key)
        logger.info("LLMClient initialized successfully")

    async def generate(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        max_tokens: int = 4000,
        temperature: float = 0.3,
        top_p: float = TOP_P
    ) -> LLMResponse:
        """
        Generate a chat completion using Groq API.

        Args:
            model: Upstream model identifier
            messages: Chat messages (text or image content blocks)
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            top_p: Nucleus sampling cutoff

        Returns:
            LLMResponse with trimmed text, token counts, and latency

        Raises:
            LLMClientError: Structured error with code, message, and details
        """
        start_time = time.time()

        try:
            logger.debug(f"Generating response with model: {model}")

            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
                top_p=top_p
            )

            latency_ms = int((time.time() - start_time) * 1000)

            # Extract response text from the first choice
            text = ""
            if response.choices:
                text = (response.choices[0].message.content or "").strip()

            usage = response.usage
            tokens_input = usage.prompt_tokens if usage else 0
            tokens_output = usage.completion_tokens if usage else 0

            logger.info(
                f"Generated response: model={model}, "
                f"input_tokens={tokens_input}, output_tokens={tokens_output}, "
                f"latency={latency_ms}ms",
                extra={"model": model}
            )

            return LLMResponse(
                text=text,
                tokens_input=tokens_input,
                tokens_output=tokens_output,
                latency_ms=latency_ms,
                model_used=model
            )

        except RateLimitError as e:
            raise self._error(
                "RATE_LIMIT_ERROR",
                "Rate limit exceeded. Please try again in a few moments.",
                model, start_time, e,
                retry_after=60, status_code=429
            )

        except AuthenticationError as e:
            raise self._error(
                "AUTHENTICATION_ERROR",
                "Authentication failed. Please check your API key.",
                model, start_time, e,
                status_code=401
            )

        except APITimeoutError as e:
            raise self._error(
                "TIMEOUT_ERROR",
                "Request timed out. Please try again.",
                model, start_time, e
            )

        except APIStatusError as e:
            raise self._error(
                "UPSTREAM_STATUS_ERROR",
                f"Groq API error: {e.status_code} - {e.message}",
                model, start_time, e,
                status_code=e.status_code
            )

        except APIError as e:
            raise self._error(
                "API_ERROR",
                f"Groq API error: {str(e)}",
                model, start_time, e
            )

        except Exception as e:
            raise self._error(
                "UNKNOWN_ERROR",
                f"Unexpected error during generation: {str(e)}",
                model, start_time, e,
                error_type=type(e).__name__
            )

    async def extract_text_from_image(self, image_data_url: str) -> LLMResponse:
        """
        Extract the literal text of one page image with the vision model.

        Retries 502/503 upstream responses per the retry policy; any other
        failure is returned to the caller immediately.

        Args:
            image_data_url: Page image as a data URL

        Returns:
            LLMResponse with the extracted text

        Raises:
            LLMClientError: On terminal failure or when retries are exhausted
        """
        messages = self.build_vision_messages(image_data_url)

        async def attempt_call(attempt: int) -> Union[LLMResponse, LLMClientError]:
            try:
                return await self.generate(
                    model=self.vision_model,
                    messages=messages,
                    max_tokens=VISION_MAX_TOKENS,
                    temperature=VISION_TEMPERATURE
                )
            except LLMClientError as e:
                return e

        def classify(outcome: Union[LLMResponse, LLMClientError]) -> Optional[int]:
            if isinstance(outcome, LLMClientError):
                return outcome.status_code
            return None

        try:
            outcome = await run_with_retry(attempt_call, self.retry_policy, classify)
        except RetryExhaustedError as e:
            raise LLMClientError(LLMError(
                code="UPSTREAM_UNAVAILABLE",
                message=f"Vision model unavailable after {e.attempts} attempts",
                details={
                    "model": self.vision_model,
                    "attempts": e.attempts,
                    "status_code": e.last_status
                }
            ))

        if isinstance(outcome, LLMClientError):
            raise outcome
        return outcome

    @staticmethod
    def build_vision_messages(image_data_url: str) -> List[Dict[str, Any]]:
        """Build the chat messages for a single-image text extraction request."""
        return [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": VISION_INSTRUCTION},
                    {"type": "image_url", "image_url": {"url": image_data_url}},
                ],
            }
        ]

    @staticmethod
    def _error(
        code: str,
        message: str,
        model: str,
        start_time: float,
        original: Exception,
        **extra_details: Any
    ) -> LLMClientError:
        latency_ms = int((time.time() - start_time) * 1000)
        details: Dict[str, Any] = {
            "model": model,
            "latency_ms": latency_ms,
            "original_error": str(original),
        }
        details.update(extra_details)
        error = LLMError(code=code, message=message, details=details)
        logger.error(
            f"{code}: model={model}, latency={latency_ms}ms, error={original}",
            exc_info=True,
            extra={"model": model, "status_code": details.get("status_code")}
        )
        return LLMClientError(error)

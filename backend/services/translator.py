"""Translation service with format-aware prompting."""
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from config import TRANSLATION_MODELS, TRANSLATION_MAX_TOKENS, TRANSLATION_TEMPERATURE
from services.llm_client import LLMClient

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {
    "en": "English",
    "zh": "Traditional Chinese",
}


class TranslationValidationError(ValueError):
    """Request rejected before any upstream call."""


class TranslationError(Exception):
    """Upstream model produced no usable translation."""


@dataclass
class TranslationResult:
    """Result of a translation operation."""
    translated_text: str
    source_language: str
    target_language: str
    model: str


def is_structured_content(text: str) -> bool:
    """Heuristic: a JSON object body starts with '{' and ends with '}'."""
    stripped = text.strip()
    return stripped.startswith("{") and stripped.endswith("}")


def build_translation_prompt(text: str, source_language: str, target_language: str) -> str:
    """
    Build the translation instruction for prose or structured content.

    Structured content asks for keys and values to be translated while the
    syntax and placeholder tokens stay intact. Prose asks for page separators
    to be kept verbatim.
    """
    source_name = LANGUAGE_NAMES[source_language]
    target_name = LANGUAGE_NAMES[target_language]

    if is_structured_content(text):
        return f"""You are a professional translator. Please translate the following JSON document from {source_name} to {target_name}.

Requirements:
- Translate BOTH the keys and the string values
- Preserve the exact JSON syntax: brackets, braces, quotes, commas and nesting
- Leave placeholder tokens such as {{{{name}}}}, {{count}}, %s and [variable] untouched
- Do not translate numbers, booleans or null
- Return only valid JSON with no explanations, comments or code fences

JSON to translate:
{text}"""

    return f"""You are a professional translator. Please translate the following text from {source_name} to {target_name}.

Requirements:
- Maintain the original meaning and context
- Preserve formatting and structure where possible, including page markers like "--- Page X ---"
- Use natural, fluent language in the target language
- Keep page separators exactly as they are (do not translate "--- Page X ---")
- Do not add any explanations or comments
- Return only the translated text

Text to translate:
{text}"""


class Translator:
    """Translates text through an allow-listed Groq model."""

    def __init__(self, llm_client: LLMClient, models: Optional[Dict[str, str]] = None):
        """
        Args:
            llm_client: Client used for upstream calls
            models: Allow-list mapping public model key to upstream model id
        """
        self.llm_client = llm_client
        self.models = dict(models or TRANSLATION_MODELS)

    def validate(self, text: str, source_language: str, target_language: str, model: str) -> None:
        """Reject requests that must never reach the upstream model."""
        if not text or not text.strip():
            raise TranslationValidationError("Text is required")
        for language in (source_language, target_language):
            if language not in LANGUAGE_NAMES:
                raise TranslationValidationError(f"Unsupported language: {language}")
        if source_language == target_language:
            raise TranslationValidationError("Source and target languages cannot be the same")
        if model not in self.models:
            allowed = ", ".join(self.models)
            raise TranslationValidationError(f"Unsupported model: {model} (allowed: {allowed})")

    async def translate(
        self,
        text: str,
        source_language: str,
        target_language: str,
        model: str
    ) -> TranslationResult:
        """
        Translate text with the selected model.

        Raises:
            TranslationValidationError: On invalid input, before any upstream call
            TranslationError: If the model returns an empty result
            LLMClientError: On upstream failure
        """
        self.validate(text, source_language, target_language, model)

        logger.info(
            f"Starting translation using {model}: {source_language} -> {target_language}, "
            f"{len(text)} characters",
            extra={"model": model}
        )

        prompt = build_translation_prompt(text, source_language, target_language)
        response = await self.llm_client.generate(
            model=self.models[model],
            messages=[{"role": "user", "content": prompt}],
            max_tokens=TRANSLATION_MAX_TOKENS,
            temperature=TRANSLATION_TEMPERATURE
        )

        translated = response.text.strip()
        if not translated:
            raise TranslationError(f"Empty translation response from model {model}")

        logger.info(
            f"Translation completed using {model}: {len(text)} -> {len(translated)} characters",
            extra={"model": model}
        )

        return TranslationResult(
            translated_text=translated,
            source_language=source_language,
            target_language=target_language,
            model=model
        )

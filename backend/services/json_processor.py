"""JSON document processing: parsing, translatable-item counting and formatting."""
import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from models.document import Document

logger = logging.getLogger(__name__)

INVALID_JSON_MESSAGE = "Invalid JSON format - please check your file syntax"

_TECHNICAL_PATTERNS = [
    re.compile(r"^[a-z_]+$"),              # snake_case identifiers like "user_id"
    re.compile(r"^[A-Z_]+$"),              # CONSTANT_NAMES like "API_KEY"
    re.compile(r"^https?://"),             # URLs
    re.compile(r"^[0-9]+$"),               # pure numbers
    re.compile(r"^[a-f0-9-]{36}$"),        # UUIDs
    re.compile(r"^[a-zA-Z0-9_-]{1,20}$"),  # short technical IDs
]


@dataclass
class JSONProcessingResult:
    """Parsed JSON document ready for extraction."""
    content: str
    structure: Any
    key_count: int


def is_translatable_text(text: str) -> bool:
    """Return True when a key or string value looks like human-facing text."""
    if not text or len(text) < 3:
        return False

    if " " in text:
        return True

    for pattern in _TECHNICAL_PATTERNS:
        if pattern.search(text):
            return False

    # camelCase property names are treated as user-facing
    if re.search(r"[a-z]", text) and re.search(r"[A-Z]", text):
        return True

    return bool(re.search(r"[a-zA-Z]", text)) and len(text) >= 4


def count_translatable_items(obj: Any) -> int:
    """Count translatable keys and string values in a parsed JSON structure."""
    if isinstance(obj, str):
        return 1 if is_translatable_text(obj) else 0
    if isinstance(obj, list):
        return sum(count_translatable_items(item) for item in obj)
    if isinstance(obj, dict):
        count = 0
        for key, value in obj.items():
            if is_translatable_text(key):
                count += 1
            count += count_translatable_items(value)
        return count
    return 0


def format_json_for_translation(obj: Any) -> str:
    """Pretty-print the whole structure; keys and values are translated together."""
    return json.dumps(obj, indent=2, ensure_ascii=False)


def process_json_document(document: Document) -> JSONProcessingResult:
    """
    Decode and parse a JSON document.

    Args:
        document: Selected JSON document

    Returns:
        JSONProcessingResult with formatted content and translatable item count

    Raises:
        ValueError: If the payload is not UTF-8 JSON
    """
    try:
        text = document.data.decode("utf-8-sig")
        structure = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error(f"JSON parsing failed for {document.name}: {e}")
        raise ValueError(INVALID_JSON_MESSAGE)

    key_count = count_translatable_items(structure)
    content = format_json_for_translation(structure)
    logger.info(f"Parsed {document.name}: {key_count} translatable items, {len(content)} characters")

    return JSONProcessingResult(content=content, structure=structure, key_count=key_count)

"""Configuration management for Jade Translate."""
import os
import logging
from typing import Dict
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _parse_model_map(raw: str) -> Dict[str, str]:
    """Parse "key=upstream-id,key2=upstream-id2" into an ordered mapping."""
    models: Dict[str, str] = {}
    for entry in raw.split(","):
        if not entry.strip():
            continue
        key, _, upstream = entry.partition("=")
        if not key.strip() or not upstream.strip():
            raise ValueError(f"Invalid TRANSLATION_MODELS entry: {entry!r}")
        models[key.strip()] = upstream.strip()
    if not models:
        raise ValueError("TRANSLATION_MODELS must name at least one model")
    return models


# API Keys
GROQ_API_KEY = os.getenv("GROQ_API_KEY")

# Server Configuration
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")

# CORS Configuration
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:3001"
).split(",")

# Client Configuration
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "120"))

# Model Configuration
VISION_MODEL = os.getenv("VISION_MODEL", "meta-llama/llama-4-scout-17b-16e-instruct")
TRANSLATION_MODELS = _parse_model_map(os.getenv(
    "TRANSLATION_MODELS",
    "qwen3-32b=qwen/qwen3-32b,"
    "kimi-k2=moonshotai/kimi-k2-instruct,"
    "llama-3.3-70b=llama-3.3-70b-versatile"
))
DEFAULT_TRANSLATION_MODEL = next(iter(TRANSLATION_MODELS))

# Generation parameters
VISION_MAX_TOKENS = 4000
VISION_TEMPERATURE = 0.1  # Low temperature for consistent text extraction
TRANSLATION_MAX_TOKENS = 4000
TRANSLATION_TEMPERATURE = 0.3
TOP_P = 0.9

# Pipeline Configuration
EXTRACTION_BATCH_SIZE = 3  # pages per request, bounded by upstream payload size
RENDER_SCALE = 2.0
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB

# Retry Configuration
RETRY_MAX_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 2.0
RETRYABLE_STATUS_CODES = frozenset({502, 503})

# Logging Configuration
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

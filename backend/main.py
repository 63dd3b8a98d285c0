"""Main entry point for the Jade Translate API."""
import json
import logging
import time
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from config import PORT, CORS_ORIGINS, LOG_LEVEL, LOG_FORMAT, TRANSLATION_MODELS, DEFAULT_TRANSLATION_MODEL
from models.api import (
    ExtractRequestAdapter,
    ExtractTextResponse,
    TranslateRequest,
    TranslateResponse,
)
from services.llm_client import LLMClient, LLMClientError
from services.text_extractor import InvalidDocumentError, TextExtractor
from services.translator import Translator, TranslationError, TranslationValidationError

# Initialize logging
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Jade Translate",
    description="Vision-based text extraction and LLM translation for PDF and JSON documents",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Services are created on first use so a missing API key surfaces per request
llm_client: Optional[LLMClient] = None
text_extractor: Optional[TextExtractor] = None
translator: Optional[Translator] = None


def get_text_extractor() -> TextExtractor:
    """Return the shared TextExtractor, creating it on first use."""
    global text_extractor
    if text_extractor is None:
        text_extractor = TextExtractor(_get_llm_client())
    return text_extractor


def get_translator() -> Translator:
    """Return the shared Translator, creating it on first use."""
    global translator
    if translator is None:
        translator = Translator(_get_llm_client(), TRANSLATION_MODELS)
    return translator


def _get_llm_client() -> LLMClient:
    global llm_client
    if llm_client is None:
        llm_client = LLMClient()
    return llm_client


async def _read_json(request: Request):
    try:
        return await request.json()
    except json.JSONDecodeError:
        raise ValueError("Request body must be valid JSON")


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Jade Translate API"}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "service": "jade-translate",
        "version": "1.0.0"
    }


@app.get("/api/models")
async def list_models():
    """List the translation model allow-list."""
    return {"models": list(TRANSLATION_MODELS), "default": DEFAULT_TRANSLATION_MODEL}


@app.post("/api/extract-text")
async def extract_text_endpoint(request: Request) -> JSONResponse:
    """
    Extract text from a batch of page images or a JSON document.

    The request body is tagged by ``type``: "pdf" carries data-URL images and a
    starting page number, "json" carries the document text. Pages that fail
    extraction are returned with sentinel text rather than dropped.

    Returns:
        ExtractTextResponse; non-2xx status accompanies success=false
    """
    start_time = time.time()

    try:
        body = await _read_json(request)
        extract_request = ExtractRequestAdapter.validate_python(body)
    except ValidationError as e:
        return _extract_failure(f"Invalid request: {_validation_message(e)}", status_code=400)
    except ValueError as e:
        return _extract_failure(str(e), status_code=400)

    try:
        extractor = get_text_extractor()
        response = await extractor.extract(extract_request)

        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(f"Extracted {response.page_count} page(s) from {extract_request.file_name} in {latency_ms}ms")
        return JSONResponse(response.to_wire())

    except InvalidDocumentError as e:
        logger.warning(f"Extraction rejected: {e}")
        return _extract_failure(str(e), status_code=400)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return _extract_failure(str(e), status_code=500)
    except LLMClientError as e:
        logger.error(f"LLM client error: {e.error.message}")
        return _extract_failure(e.error.message, status_code=500)
    except Exception as e:
        logger.error(f"Unexpected error extracting text: {e}", exc_info=True)
        return _extract_failure(f"Internal server error: {str(e)}", status_code=500)


@app.post("/api/translate")
async def translate_endpoint(request: Request) -> JSONResponse:
    """
    Translate text between English and Traditional Chinese.

    Returns:
        TranslateResponse; non-2xx status accompanies success=false
    """
    try:
        body = await _read_json(request)
        translate_request = TranslateRequest.model_validate(body)
    except ValidationError as e:
        return _translate_failure(f"Invalid request: {_validation_message(e)}", status_code=400)
    except ValueError as e:
        return _translate_failure(str(e), status_code=400)

    try:
        service = get_translator()
        result = await service.translate(
            text=translate_request.text,
            source_language=translate_request.source_language,
            target_language=translate_request.target_language,
            model=translate_request.model
        )
        response = TranslateResponse(
            success=True,
            translated_text=result.translated_text,
            source_language=result.source_language,
            target_language=result.target_language,
            model=result.model
        )
        return JSONResponse(response.to_wire())

    except TranslationValidationError as e:
        logger.warning(f"Translation rejected: {e}")
        return _translate_failure(str(e), status_code=400)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return _translate_failure(str(e), status_code=500)
    except (LLMClientError, TranslationError) as e:
        message = f"Translation failed with {translate_request.model}: {e}"
        logger.error(message)
        return _translate_failure(message, status_code=500)
    except Exception as e:
        logger.error(f"Unexpected error during translation: {e}", exc_info=True)
        return _translate_failure(f"Internal server error: {str(e)}", status_code=500)


def _extract_failure(message: str, status_code: int) -> JSONResponse:
    response = ExtractTextResponse(success=False, error=message)
    return JSONResponse(response.to_wire(), status_code=status_code)


def _translate_failure(message: str, status_code: int) -> JSONResponse:
    response = TranslateResponse(success=False, error=message)
    return JSONResponse(response.to_wire(), status_code=status_code)


if __name__ == "__main__":
    import uvicorn
    from logger import setup_logging

    setup_logging(LOG_LEVEL, LOG_FORMAT)
    logger.info(f"Starting Jade Translate API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)

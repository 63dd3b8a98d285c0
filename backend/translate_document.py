"""
Document Translation Script for Jade Translate.

This script:
1. Loads and validates a PDF or JSON file
2. Renders PDF pages to images locally
3. Extracts text through the API in batches of pages
4. Translates the combined text through the API
5. Prints or writes the original and translated text side by side

Usage:
    python translate_document.py report.pdf --direction en-to-zh --model kimi-k2
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))

from config import API_BASE_URL, DEFAULT_TRANSLATION_MODEL, LOG_LEVEL, TRANSLATION_MODELS
from logger import setup_logging
from models.document import Document, DocumentKind
from models.pipeline import LanguageDirection, PipelineStage, RunSnapshot
from services.document_loader import (
    DocumentLoader,
    DocumentValidationError,
    estimate_page_count,
    format_file_size,
)
from services.pipeline_orchestrator import PipelineOrchestrator
from services.pipeline_store import PipelineStore
from services.proxy_client import ExtractionProxyClient, TranslationProxyClient

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Translate a PDF or JSON document between English and Chinese")
    parser.add_argument("file", help="Path to a PDF or JSON file")
    parser.add_argument(
        "--direction",
        choices=[d.value for d in LanguageDirection],
        default=LanguageDirection.EN_TO_ZH.value,
        help="Translation direction (default: en-to-zh)"
    )
    parser.add_argument(
        "--model",
        choices=list(TRANSLATION_MODELS),
        default=DEFAULT_TRANSLATION_MODEL,
        help=f"Translation model (default: {DEFAULT_TRANSLATION_MODEL})"
    )
    parser.add_argument("--api-url", default=API_BASE_URL, help=f"API base URL (default: {API_BASE_URL})")
    parser.add_argument("--output", help="Write the result to this file instead of stdout")
    parser.add_argument("--json-logs", action="store_true", help="Emit structured JSON logs")
    return parser.parse_args(argv)


class ProgressReporter:
    """Store subscriber that logs stage changes and progress steps."""

    def __init__(self):
        self._stage: Optional[PipelineStage] = None
        self._progress = -1

    def __call__(self, snapshot: RunSnapshot) -> None:
        if snapshot.stage != self._stage:
            self._stage = snapshot.stage
            logger.info(f"Stage: {snapshot.stage.value}", extra={"stage": snapshot.stage.value})
        if snapshot.progress != self._progress:
            self._progress = snapshot.progress
            logger.info(f"Progress: {snapshot.progress}%", extra={"progress": snapshot.progress})


def format_result(snapshot: RunSnapshot) -> str:
    """Render the original and translated text as one report."""
    divider = "=" * 60
    return (
        f"{divider}\nORIGINAL TEXT\n{divider}\n{snapshot.original_text}\n\n"
        f"{divider}\nTRANSLATED TEXT\n{divider}\n{snapshot.translated_text}\n"
    )


def describe_document(document: Document) -> str:
    """One-line summary of a loaded file; PDFs include a rough page estimate."""
    details = [document.kind.value, format_file_size(document.size)]
    if document.kind == DocumentKind.PDF:
        details.append(estimate_page_count(document.size))
    return f"{document.name} ({', '.join(details)})"


async def translate_file(args: argparse.Namespace) -> RunSnapshot:
    """Run the full pipeline for one file and return the final snapshot."""
    document = DocumentLoader().load(args.file)
    logger.info(f"Loaded {describe_document(document)}")

    store = PipelineStore(LanguageDirection(args.direction), args.model)
    store.subscribe(ProgressReporter())
    store.select_document(document)

    async with ExtractionProxyClient(args.api_url) as extraction_client, \
            TranslationProxyClient(args.api_url) as translation_client:
        orchestrator = PipelineOrchestrator(store, extraction_client, translation_client)
        return await orchestrator.run()


def main(argv: Optional[List[str]] = None) -> int:
    """Main translation process."""
    args = parse_args(argv)
    setup_logging(LOG_LEVEL, "json" if args.json_logs else "text")

    try:
        snapshot = asyncio.run(translate_file(args))
    except DocumentValidationError as e:
        logger.error(f"Invalid file: {e}")
        return 2
    except KeyboardInterrupt:
        logger.warning("Translation interrupted by user")
        return 1

    if snapshot.stage != PipelineStage.COMPLETED:
        for error in snapshot.errors:
            logger.error(error)
        return 1

    report = format_result(snapshot)
    if args.output:
        Path(args.output).write_text(report, encoding="utf-8")
        logger.info(f"Wrote result to {args.output}")
    else:
        print(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())

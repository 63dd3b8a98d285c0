"""
Pipeline Orchestrator for Jade Translate.

Drives one translation run through an explicit state machine:

    Idle -> RenderingDocument -> ExtractingText -> Translating -> Completed

with Failed reachable from every working stage.

Each working stage owns a fixed slice of the 0-100 progress scale
(rendering 0-50, extraction 50-75, translation 75-100), so reported
progress is non-decreasing across a successful run. Failures isolated to one
page or one batch are recovered locally; anything else ends the run in
Failed with a single human-readable message and progress reset to 0, while
the selected document is left in place for a retry.
"""
import logging
import time
from typing import List, Optional

from config import EXTRACTION_BATCH_SIZE, RENDER_SCALE
from models.document import (
    Document,
    DocumentKind,
    ExtractedPage,
    ExtractionUnit,
    PageImage,
    combine_pages,
    extraction_failure_text,
)
from models.pipeline import PipelineStage, RunSnapshot, STAGE_PROGRESS, stage_progress
from services.batch_scheduler import run_batches
from services.json_processor import process_json_document
from services.page_renderer import PLACEHOLDER_IMAGE, FitzPageRenderer, PageRenderer
from services.pipeline_store import PipelineStore
from services.proxy_client import ExtractionProxyClient, ProxyError, TranslationProxyClient
from services.translator import TranslationValidationError

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """Pipeline-fatal failure carrying a user-facing message."""


class PipelineOrchestrator:
    """Coordinates render -> extract -> translate for the document held in the store."""

    def __init__(
        self,
        store: PipelineStore,
        extraction_client: ExtractionProxyClient,
        translation_client: TranslationProxyClient,
        renderer: Optional[PageRenderer] = None,
        batch_size: int = EXTRACTION_BATCH_SIZE,
        render_scale: float = RENDER_SCALE
    ):
        """
        Args:
            store: Shared state; the orchestrator is its only run-state writer
            extraction_client: Client for the extraction endpoint
            translation_client: Client for the translation endpoint
            renderer: Page renderer (PyMuPDF by default)
            batch_size: Page images per extraction request
            render_scale: Zoom factor used when rasterising pages
        """
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.store = store
        self.extraction_client = extraction_client
        self.translation_client = translation_client
        self.renderer = renderer or FitzPageRenderer()
        self.batch_size = batch_size
        self.render_scale = render_scale

    async def run(self) -> RunSnapshot:
        """
        Execute a full run for the currently selected document.

        Returns:
            The snapshot after the run completed or failed. When no document is
            selected, or a run is already in progress, nothing is started.
        """
        state = self.store.snapshot()
        if state.is_running:
            logger.warning("Translation already in progress; start ignored")
            return state
        if state.document is None:
            logger.warning("Start requested without a document")
            return self.store.add_error("Please select a PDF or JSON file before starting translation")

        document = state.document
        direction = state.language_direction
        model = state.model
        start_time = time.time()

        self.store.begin_run()
        logger.info(
            f"Starting {document.kind.value.upper()} pipeline for {document.name} "
            f"(direction={direction.value}, model={model})"
        )

        try:
            if document.kind == DocumentKind.PDF:
                original_text = await self._process_pdf(document)
            elif document.kind == DocumentKind.JSON:
                original_text = await self._process_json(document)
            else:
                raise PipelineError(f"Unsupported file type: {document.kind.value}")

            self.store.set_original_text(original_text)
            self._report_progress(STAGE_PROGRESS[PipelineStage.EXTRACTING_TEXT][1])

            self._enter(PipelineStage.TRANSLATING)
            result = await self.translation_client.translate(
                text=original_text,
                source_language=direction.source,
                target_language=direction.target,
                model=model
            )
            self.store.set_translated_text(result.translated_text)

            final = self.store.complete_run()
            elapsed_ms = int((time.time() - start_time) * 1000)
            logger.info(
                f"Translation completed for {document.name} using {model} in {elapsed_ms}ms",
                extra={"stage": final.stage.value, "progress": final.progress}
            )
            return final

        except (PipelineError, ProxyError, TranslationValidationError) as e:
            return self._fail(str(e))
        except Exception as e:
            logger.error(f"Unexpected pipeline error: {e}", exc_info=True)
            return self._fail(f"Translation pipeline failed: {e}")

    async def _process_pdf(self, document: Document) -> str:
        images = await self._render_pages(document)
        pages = await self._extract_pages(document, images)
        return combine_pages(pages)

    async def _render_pages(self, document: Document) -> List[PageImage]:
        """Render every page; a page that fails keeps its slot with a placeholder image."""
        self._enter(PipelineStage.RENDERING_DOCUMENT)

        try:
            page_count = await self.renderer.count_pages(document)
        except Exception as e:
            raise PipelineError(f"PDF processing failed: {e}")
        if page_count <= 0:
            raise PipelineError("PDF processing failed: document has no pages")

        self.store.set_page_count(page_count)
        logger.info(f"PDF has {page_count} page(s)")

        images: List[Optional[PageImage]] = [None] * page_count
        for page_number in range(1, page_count + 1):
            try:
                data_url = await self.renderer.render_page(document, page_number, self.render_scale)
                images[page_number - 1] = PageImage(page_number=page_number, data_url=data_url)
            except Exception as e:
                logger.error(
                    f"Error rendering page {page_number}: {e}",
                    extra={"page_number": page_number}
                )
                images[page_number - 1] = PageImage(
                    page_number=page_number,
                    data_url=PLACEHOLDER_IMAGE,
                    is_placeholder=True
                )
            self._report_progress(
                stage_progress(PipelineStage.RENDERING_DOCUMENT, page_number, page_count)
            )

        if all(image.is_placeholder for image in images):
            raise PipelineError("PDF processing failed: no page could be rendered")

        return images

    async def _extract_pages(self, document: Document, images: List[PageImage]) -> List[ExtractedPage]:
        """Send page images in sequential batches and reassemble them by page number."""
        self._enter(PipelineStage.EXTRACTING_TEXT)

        units = [ExtractionUnit(sequence_number=image.page_number, payload=image.data_url) for image in images]

        async def submit(batch: List[ExtractionUnit], batch_number: int) -> List[ExtractedPage]:
            response = await self.extraction_client.extract_pdf_batch(
                images=[unit.payload for unit in batch],
                file_name=f"{document.name} (batch {batch_number})",
                start_page_number=batch[0].sequence_number
            )
            return [ExtractedPage(page_number=page.page_number, text=page.text) for page in response.pages]

        def on_batch_complete(completed: int, total: int) -> None:
            self._report_progress(stage_progress(PipelineStage.EXTRACTING_TEXT, completed, total))

        pages = await run_batches(units, self.batch_size, submit, on_batch_complete)

        placeholders = {image.page_number for image in images if image.is_placeholder}
        return [
            ExtractedPage(page_number=page.page_number, text=extraction_failure_text(page.page_number))
            if page.page_number in placeholders else page
            for page in pages
        ]

    async def _process_json(self, document: Document) -> str:
        """Parse locally, then submit the whole document as one extraction unit."""
        self._enter(PipelineStage.RENDERING_DOCUMENT)
        self._report_progress(stage_progress(PipelineStage.RENDERING_DOCUMENT, 1, 2))

        try:
            parsed = process_json_document(document)
        except ValueError as e:
            raise PipelineError(str(e))

        self.store.set_key_count(parsed.key_count)
        self.store.set_page_count(1)
        self._report_progress(STAGE_PROGRESS[PipelineStage.RENDERING_DOCUMENT][1])

        self._enter(PipelineStage.EXTRACTING_TEXT)
        response = await self.extraction_client.extract_json(parsed.content, document.name)
        return response.extracted_text

    def _enter(self, stage: PipelineStage) -> None:
        self.store.set_stage(stage)
        logger.info(f"Entering stage {stage.value}", extra={"stage": stage.value})

    def _report_progress(self, progress: int) -> None:
        # Stage ranges are ordered, so never move backwards within a run
        if progress > self.store.snapshot().progress:
            self.store.set_progress(progress)
            logger.debug(f"Progress {progress}%", extra={"progress": progress})

    def _fail(self, message: str) -> RunSnapshot:
        stage = self.store.snapshot().stage
        logger.error(f"Pipeline failed during {stage.value}: {message}", extra={"stage": stage.value})
        return self.store.fail_run(message)

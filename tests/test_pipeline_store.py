"""Unit tests for PipelineStore."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from models.document import Document, DocumentKind
from models.pipeline import LanguageDirection, PipelineStage, stage_progress
from services.pipeline_store import PipelineStore


def make_store():
    return PipelineStore(LanguageDirection.EN_TO_ZH, "kimi-k2")


def doc(name="a.pdf"):
    return Document(name=name, data=b"%PDF", kind=DocumentKind.PDF)


class TestPipelineStore:
    """Test suite for PipelineStore."""

    def test_initial_state(self):
        snapshot = make_store().snapshot()

        assert snapshot.stage == PipelineStage.IDLE
        assert snapshot.document is None
        assert snapshot.progress == 0
        assert snapshot.errors == ()
        assert not snapshot.can_start

    def test_subscribers_receive_every_change(self):
        store = make_store()
        seen = []
        unsubscribe = store.subscribe(seen.append)

        store.select_document(doc())
        store.set_model("qwen3-32b")
        unsubscribe()
        store.clear_errors()

        assert len(seen) == 2
        assert seen[0].document.name == "a.pdf"
        assert seen[1].model == "qwen3-32b"

    def test_select_document_resets_derived_state(self):
        store = make_store()
        store.select_document(doc())
        store.begin_run()
        store.set_page_count(4)
        store.set_original_text("--- Page 1 ---\nHi")
        store.set_translated_text("--- Page 1 ---\n你好")
        store.complete_run()

        snapshot = store.select_document(doc("b.pdf"))

        assert snapshot.document.name == "b.pdf"
        assert snapshot.stage == PipelineStage.IDLE
        assert snapshot.page_count == 0
        assert snapshot.original_text == ""
        assert snapshot.translated_text == ""
        assert snapshot.progress == 0

    def test_select_document_clears_previous_run_errors(self):
        store = make_store()
        store.select_document(doc())
        store.begin_run()
        store.fail_run("Translation failed with kimi-k2: boom")

        snapshot = store.select_document(doc("b.pdf"))

        assert snapshot.errors == ()
        assert snapshot.stage == PipelineStage.IDLE
        assert store.clear_document().errors == ()

    def test_document_cannot_change_while_running(self):
        store = make_store()
        store.select_document(doc())
        store.begin_run()

        with pytest.raises(RuntimeError):
            store.select_document(doc("b.pdf"))
        assert not store.can_start

    def test_fail_run_is_a_single_notification(self):
        store = make_store()
        store.select_document(doc())
        store.begin_run()
        store.set_progress(80)
        seen = []
        store.subscribe(seen.append)

        store.fail_run("boom")

        assert len(seen) == 1
        assert seen[0].progress == 0
        assert seen[0].stage == PipelineStage.FAILED
        assert seen[0].errors == ("boom",)
        assert seen[0].document is not None
        assert seen[0].can_start

    def test_errors_can_be_dismissed(self):
        store = make_store()
        store.add_error("first")
        store.add_error("second")
        store.add_error("third")

        assert store.remove_error(1).errors == ("first", "third")
        assert store.clear_errors().errors == ()

    def test_progress_is_clamped(self):
        store = make_store()

        assert store.set_progress(140).progress == 100
        assert store.set_progress(-5).progress == 0

    def test_language_direction(self):
        store = make_store()

        snapshot = store.set_language_direction(LanguageDirection.ZH_TO_EN)

        assert snapshot.language_direction.source == "zh"
        assert snapshot.language_direction.target == "en"


class TestStageProgress:
    """Test suite for stage progress ranges."""

    def test_ranges(self):
        assert stage_progress(PipelineStage.RENDERING_DOCUMENT, 0, 4) == 0
        assert stage_progress(PipelineStage.RENDERING_DOCUMENT, 4, 4) == 50
        assert stage_progress(PipelineStage.EXTRACTING_TEXT, 1, 3) == 58
        assert stage_progress(PipelineStage.EXTRACTING_TEXT, 3, 3) == 75
        assert stage_progress(PipelineStage.TRANSLATING, 1, 1) == 100

    def test_empty_stage_reports_its_end(self):
        assert stage_progress(PipelineStage.EXTRACTING_TEXT, 0, 0) == 75

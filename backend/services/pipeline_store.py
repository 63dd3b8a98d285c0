"""Owned session state for a translation run, with subscriber notification."""
import dataclasses
import logging
from typing import Callable, List, Optional

from config import DEFAULT_TRANSLATION_MODEL
from models.document import Document
from models.pipeline import LanguageDirection, PipelineStage, RunSnapshot

logger = logging.getLogger(__name__)

Listener = Callable[[RunSnapshot], None]


def _initial_snapshot(
    language_direction: LanguageDirection = LanguageDirection.EN_TO_ZH,
    model: str = DEFAULT_TRANSLATION_MODEL
) -> RunSnapshot:
    return RunSnapshot(
        document=None,
        language_direction=language_direction,
        model=model,
        stage=PipelineStage.IDLE,
        page_count=0,
        key_count=0,
        original_text="",
        translated_text="",
        progress=0,
        errors=(),
        is_running=False,
    )


class PipelineStore:
    """
    Single source of truth for the document selection and the current run.

    Presentation code reads immutable snapshots and issues commands
    (select/clear document, settings, error dismissal). Only the orchestrator
    calls the run mutators. Every change notifies subscribers with the new
    snapshot.
    """

    def __init__(
        self,
        language_direction: LanguageDirection = LanguageDirection.EN_TO_ZH,
        model: str = DEFAULT_TRANSLATION_MODEL
    ):
        self._state = _initial_snapshot(language_direction, model)
        self._listeners: List[Listener] = []

    def snapshot(self) -> RunSnapshot:
        return self._state

    @property
    def can_start(self) -> bool:
        return self._state.can_start

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _update(self, **changes) -> RunSnapshot:
        self._state = dataclasses.replace(self._state, **changes)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    # Presentation commands

    def select_document(self, document: Optional[Document]) -> RunSnapshot:
        """Replace the selected document and reset every derived field."""
        if self._state.is_running:
            raise RuntimeError("Cannot change the document while a translation is running")
        if document is not None:
            logger.info(f"Document selected: {document.name} ({document.kind.value})")
        return self._update(
            document=document,
            stage=PipelineStage.IDLE,
            page_count=0,
            key_count=0,
            original_text="",
            translated_text="",
            progress=0,
            errors=(),
        )

    def clear_document(self) -> RunSnapshot:
        return self.select_document(None)

    def set_language_direction(self, direction: LanguageDirection) -> RunSnapshot:
        return self._update(language_direction=LanguageDirection(direction))

    def set_model(self, model: str) -> RunSnapshot:
        return self._update(model=model)

    def remove_error(self, index: int) -> RunSnapshot:
        errors = tuple(e for i, e in enumerate(self._state.errors) if i != index)
        return self._update(errors=errors)

    def clear_errors(self) -> RunSnapshot:
        return self._update(errors=())

    # Orchestrator mutators

    def begin_run(self) -> RunSnapshot:
        return self._update(
            is_running=True,
            stage=PipelineStage.IDLE,
            page_count=0,
            key_count=0,
            original_text="",
            translated_text="",
            progress=0,
        )

    def set_stage(self, stage: PipelineStage) -> RunSnapshot:
        return self._update(stage=stage)

    def set_progress(self, progress: int) -> RunSnapshot:
        return self._update(progress=max(0, min(100, int(progress))))

    def set_page_count(self, page_count: int) -> RunSnapshot:
        return self._update(page_count=page_count)

    def set_key_count(self, key_count: int) -> RunSnapshot:
        return self._update(key_count=key_count)

    def set_original_text(self, text: str) -> RunSnapshot:
        return self._update(original_text=text)

    def set_translated_text(self, text: str) -> RunSnapshot:
        return self._update(translated_text=text)

    def add_error(self, message: str) -> RunSnapshot:
        return self._update(errors=self._state.errors + (str(message),))

    def complete_run(self) -> RunSnapshot:
        return self._update(stage=PipelineStage.COMPLETED, progress=100, is_running=False)

    def fail_run(self, message: str) -> RunSnapshot:
        """Record a fatal error; the document selection is kept so the user can retry."""
        return self._update(
            errors=self._state.errors + (str(message),),
            stage=PipelineStage.FAILED,
            progress=0,
            is_running=False,
        )

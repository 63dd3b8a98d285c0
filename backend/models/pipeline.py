"""Pipeline run state models."""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from .document import Document


class PipelineStage(str, Enum):
    """States of a translation run."""
    IDLE = "idle"
    RENDERING_DOCUMENT = "rendering_document"
    EXTRACTING_TEXT = "extracting_text"
    TRANSLATING = "translating"
    COMPLETED = "completed"
    FAILED = "failed"


# Progress range (start, end) owned by each working stage
STAGE_PROGRESS: Dict[PipelineStage, Tuple[int, int]] = {
    PipelineStage.RENDERING_DOCUMENT: (0, 50),
    PipelineStage.EXTRACTING_TEXT: (50, 75),
    PipelineStage.TRANSLATING: (75, 100),
}


def stage_progress(stage: PipelineStage, completed: int, total: int) -> int:
    """Map completed/total work inside a stage onto the overall 0-100 scale."""
    start, end = STAGE_PROGRESS[stage]
    if total <= 0:
        return end
    fraction = min(max(completed / total, 0.0), 1.0)
    return start + round(fraction * (end - start))


class LanguageDirection(str, Enum):
    """Translation direction offered to the user."""
    EN_TO_ZH = "en-to-zh"
    ZH_TO_EN = "zh-to-en"

    @property
    def source(self) -> str:
        return self.value.split("-to-")[0]

    @property
    def target(self) -> str:
        return self.value.split("-to-")[1]


@dataclass(frozen=True)
class RunSnapshot:
    """Read-only view of the pipeline state handed to presentation code."""
    document: Optional[Document]
    language_direction: LanguageDirection
    model: str
    stage: PipelineStage
    page_count: int
    key_count: int
    original_text: str
    translated_text: str
    progress: int
    errors: Tuple[str, ...]
    is_running: bool

    @property
    def can_start(self) -> bool:
        return self.document is not None and not self.is_running

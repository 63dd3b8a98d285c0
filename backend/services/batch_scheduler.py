"""Sequential batch submission with per-batch failure isolation."""
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from models.document import ExtractedPage, ExtractionUnit, extraction_failure_text

logger = logging.getLogger(__name__)

T = TypeVar("T")

# submit(batch, batch_number) -> one ExtractedPage per unit in the batch
SubmitBatch = Callable[[List[ExtractionUnit], int], Awaitable[List[ExtractedPage]]]
# on_batch_complete(completed_batches, total_batches)
BatchProgress = Callable[[int, int], None]


class MalformedBatchResult(Exception):
    """Batch results do not match the submitted units one-to-one."""


def partition(units: Sequence[T], batch_size: int) -> List[List[T]]:
    """Split units into consecutive batches of at most ``batch_size``, keeping order."""
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    return [list(units[i:i + batch_size]) for i in range(0, len(units), batch_size)]


def _check_batch_result(batch: List[ExtractionUnit], results: List[ExtractedPage]) -> None:
    expected = sorted(unit.sequence_number for unit in batch)
    received = sorted(page.page_number for page in results)
    if expected != received:
        raise MalformedBatchResult(
            f"expected pages {expected}, received {received}"
        )


async def run_batches(
    units: Sequence[ExtractionUnit],
    batch_size: int,
    submit: SubmitBatch,
    on_batch_complete: Optional[BatchProgress] = None
) -> List[ExtractedPage]:
    """
    Submit units in sequential batches and merge the results in unit order.

    A batch that raises or returns results not matching its units one-to-one
    is replaced by one failure record per unit; later batches still run.

    Args:
        units: Ordered extraction units (sequence numbers must be unique)
        batch_size: Maximum units per batch
        submit: Coroutine handling one batch
        on_batch_complete: Called after every batch, successful or not

    Returns:
        Exactly one ExtractedPage per unit, sorted by sequence number
    """
    batches = partition(units, batch_size)
    total_batches = len(batches)
    results: List[ExtractedPage] = []

    for index, batch in enumerate(batches, start=1):
        first, last = batch[0].sequence_number, batch[-1].sequence_number
        logger.info(
            f"Processing batch {index}/{total_batches} (pages {first}-{last})...",
            extra={"batch": index}
        )

        try:
            batch_results = list(await submit(batch, index))
            _check_batch_result(batch, batch_results)
            results.extend(batch_results)
            logger.info(f"Batch {index} completed: {len(batch_results)} pages", extra={"batch": index})
        except Exception as e:
            logger.error(f"Batch {index} failed: {e}", extra={"batch": index})
            results.extend(
                ExtractedPage(
                    page_number=unit.sequence_number,
                    text=extraction_failure_text(unit.sequence_number)
                )
                for unit in batch
            )

        if on_batch_complete:
            on_batch_complete(index, total_batches)

    return sorted(results, key=lambda page: page.page_number)

"""Unit tests for the batch scheduler."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import asyncio
import pytest
from models.document import ExtractedPage, ExtractionUnit
from services.batch_scheduler import partition, run_batches


def make_units(count):
    return [ExtractionUnit(sequence_number=i, payload=f"image-{i}") for i in range(1, count + 1)]


class RecordingSubmitter:
    """Submit stub that echoes pages and fails selected batches."""

    def __init__(self, fail_batches=(), reverse=False):
        self.fail_batches = set(fail_batches)
        self.reverse = reverse
        self.batches = []

    async def __call__(self, batch, batch_number):
        self.batches.append([unit.sequence_number for unit in batch])
        if batch_number in self.fail_batches:
            raise RuntimeError(f"batch {batch_number} exploded")
        pages = [ExtractedPage(page_number=u.sequence_number, text=f"text {u.sequence_number}") for u in batch]
        return list(reversed(pages)) if self.reverse else pages


class TestPartition:
    """Test suite for partition."""

    def test_seven_units_batch_of_three(self):
        """Test 7 units with batch size 3 give batches of [3, 3, 1]."""
        batches = partition(make_units(7), 3)

        assert [len(b) for b in batches] == [3, 3, 1]
        assert [u.sequence_number for b in batches for u in b] == list(range(1, 8))

    def test_exact_multiple(self):
        """Test evenly divisible input has no short batch."""
        assert [len(b) for b in partition(list(range(6)), 3)] == [3, 3]

    def test_empty(self):
        """Test empty input gives no batches."""
        assert partition([], 3) == []

    def test_invalid_batch_size(self):
        """Test batch size must be positive."""
        with pytest.raises(ValueError):
            partition([1, 2], 0)


class TestRunBatches:
    """Test suite for run_batches."""

    def test_submits_sequentially_in_unit_order(self):
        """Test batches are submitted one after another in original order."""
        submit = RecordingSubmitter()

        pages = asyncio.run(run_batches(make_units(7), 3, submit))

        assert submit.batches == [[1, 2, 3], [4, 5, 6], [7]]
        assert [p.page_number for p in pages] == list(range(1, 8))
        assert pages[0].text == "text 1"

    def test_failed_batch_is_replaced_by_placeholders(self):
        """Test a failing batch yields sentinel pages and later batches still run."""
        submit = RecordingSubmitter(fail_batches={2})

        pages = asyncio.run(run_batches(make_units(7), 3, submit))

        assert len(submit.batches) == 3
        assert [p.page_number for p in pages] == list(range(1, 8))
        assert pages[3].text == "[Error extracting text from page 4]"
        assert pages[5].text == "[Error extracting text from page 6]"
        assert pages[6].text == "text 7"

    def test_every_batch_failing_keeps_page_count(self):
        """Test N records with unique page numbers even when all batches fail."""
        for count in (1, 2, 3, 4, 7, 10):
            submit = RecordingSubmitter(fail_batches=set(range(1, 10)))

            pages = asyncio.run(run_batches(make_units(count), 3, submit))

            assert len(pages) == count
            assert sorted({p.page_number for p in pages}) == list(range(1, count + 1))
            assert all(p.text.startswith("[Error extracting text") for p in pages)

    def test_reordered_results_are_sorted(self):
        """Test results returned out of order are reassembled by page number."""
        submit = RecordingSubmitter(reverse=True)

        pages = asyncio.run(run_batches(make_units(5), 3, submit))

        assert [p.page_number for p in pages] == [1, 2, 3, 4, 5]
        assert [p.text for p in pages] == [f"text {i}" for i in range(1, 6)]

    def test_malformed_result_counts_as_failure(self):
        """Test a batch returning the wrong pages is replaced by placeholders."""
        async def submit(batch, batch_number):
            if batch_number == 1:
                return [ExtractedPage(page_number=1, text="only one")]
            return [ExtractedPage(page_number=u.sequence_number, text="ok") for u in batch]

        pages = asyncio.run(run_batches(make_units(4), 3, submit))

        assert [p.page_number for p in pages] == [1, 2, 3, 4]
        assert pages[0].text == "[Error extracting text from page 1]"
        assert pages[3].text == "ok"

    def test_progress_callback_after_every_batch(self):
        """Test the callback reports each completed batch, failed or not."""
        calls = []
        submit = RecordingSubmitter(fail_batches={1})

        asyncio.run(run_batches(make_units(7), 3, submit, lambda done, total: calls.append((done, total))))

        assert calls == [(1, 3), (2, 3), (3, 3)]

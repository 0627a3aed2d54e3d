"""Unit tests for core/chapter_locator.py."""
import pytest

from chapter_summarizer.core.chapter_locator import ChapterLocator
from chapter_summarizer.errors import ChapterError, ErrorKind
from chapter_summarizer.models.toc import TocEntry


@pytest.fixture
def locator():
    return ChapterLocator()


class TestLocate:

    def test_tie_break_later_entry_wins(self, locator, sample_toc):
        span = locator.locate(sample_toc, current_page=12, last_document_page=30)
        assert span.title == "C"
        assert span.start_page == 10
        assert span.end_page == 19
        assert span.depth == 0

    def test_last_chapter_runs_to_document_end(self, locator, sample_toc):
        span = locator.locate(sample_toc, current_page=25, last_document_page=30)
        assert span.title == "D"
        assert (span.start_page, span.end_page) == (20, 30)

    def test_first_chapter(self, locator, sample_toc):
        span = locator.locate(sample_toc, current_page=1, last_document_page=30)
        assert span.title == "A"
        # B is deeper, so C bounds A
        assert (span.start_page, span.end_page) == (1, 9)

    def test_nested_section_ends_at_next_sibling(self, locator):
        toc = [
            TocEntry(title="Part I", page=1, depth=0),
            TocEntry(title="Ch 1", page=2, depth=1),
            TocEntry(title="Ch 1.1", page=3, depth=2),
            TocEntry(title="Ch 2", page=8, depth=1),
            TocEntry(title="Part II", page=15, depth=0),
        ]
        span = locator.locate(toc, current_page=2, last_document_page=20)
        assert span.title == "Ch 1"
        assert span.end_page == 7

    def test_nested_last_child_ends_at_shallower_entry(self, locator):
        toc = [
            TocEntry(title="Part I", page=1, depth=0),
            TocEntry(title="Ch 2", page=8, depth=1),
            TocEntry(title="Part II", page=15, depth=0),
        ]
        span = locator.locate(toc, current_page=9, last_document_page=20)
        assert span.title == "Ch 2"
        assert span.end_page == 14

    def test_single_page_chapter(self, locator):
        toc = [
            TocEntry(title="Cover", page=1, depth=0),
            TocEntry(title="Body", page=2, depth=0),
        ]
        span = locator.locate(toc, current_page=1, last_document_page=50)
        assert (span.start_page, span.end_page) == (1, 1)
        assert span.page_count == 1


class TestLocateErrors:

    def test_empty_toc(self, locator):
        with pytest.raises(ChapterError) as exc_info:
            locator.locate([], current_page=5, last_document_page=10)
        assert exc_info.value.kind == ErrorKind.NO_TABLE_OF_CONTENTS
        assert not exc_info.value.retryable

    def test_page_before_first_entry(self, locator):
        toc = [TocEntry(title="Ch 1", page=5, depth=0)]
        with pytest.raises(ChapterError) as exc_info:
            locator.locate(toc, current_page=3, last_document_page=10)
        assert exc_info.value.kind == ErrorKind.CHAPTER_NOT_DETERMINED


class TestNonMonotonicToc:

    def test_scan_stops_at_first_later_entry(self, locator):
        toc = [
            TocEntry(title="Ch 1", page=1, depth=0),
            TocEntry(title="Ch 3", page=30, depth=0),
            TocEntry(title="Ch 2", page=10, depth=0),
        ]
        span = locator.locate(toc, current_page=12, last_document_page=40)
        assert span.title == "Ch 1"
        assert span.end_page == 29

    def test_backwards_boundary_never_inverts_span(self, locator):
        toc = [
            TocEntry(title="Ch 5", page=20, depth=0),
            TocEntry(title="Appendix", page=5, depth=0),
        ]
        span = locator.locate(toc, current_page=25, last_document_page=40)
        assert span.title == "Appendix"

    def test_boundary_before_start_clamped(self, locator):
        toc = [
            TocEntry(title="Ch 1", page=10, depth=0),
            TocEntry(title="Sec 1.1", page=30, depth=1),
            TocEntry(title="Index", page=3, depth=0),
        ]
        span = locator.locate(toc, current_page=12, last_document_page=40)
        assert span.title == "Ch 1"
        assert (span.start_page, span.end_page) == (10, 10)


class TestSpanBounds:

    @pytest.mark.parametrize("current_page", [1, 5, 9, 10, 12, 19, 20, 29, 30])
    def test_span_within_document(self, locator, sample_toc, current_page):
        span = locator.locate(sample_toc, current_page, last_document_page=30)
        assert span.start_page <= current_page
        assert span.start_page <= span.end_page <= 30

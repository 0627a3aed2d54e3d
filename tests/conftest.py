"""
Shared test fixtures.
Provides an in-memory document handle so no real books are needed.
"""
import pytest

from chapter_summarizer.core.document import DocumentHandle
from chapter_summarizer.models.settings import Settings
from chapter_summarizer.models.toc import TocEntry


# ---------------------------------------------------------------------------
# FakeDocument – scriptable DocumentHandle
# ---------------------------------------------------------------------------
class FakeDocument(DocumentHandle):
    """Document handle backed by a dict of page texts."""

    def __init__(
        self,
        pages: dict[int, str] | None = None,
        toc: list[TocEntry] | None = None,
        page_count: int | None = None,
        positional: bool = False,
        failing_pages: set[int] | None = None,
        positional_text: str | None = None,
        positional_raises: bool = False,
    ):
        self.pages = pages or {}
        self.toc = toc or []
        self.page_count = page_count if page_count is not None else max(self.pages, default=0)
        self.supports_positional_text = positional
        self.failing_pages = failing_pages or set()
        self.positional_text = positional_text
        self.positional_raises = positional_raises
        self.requested_pages: list[int] = []
        self.between_calls: list[tuple] = []
        self.closed = False

    def get_toc(self):
        return list(self.toc)

    def get_page_count(self):
        return self.page_count

    def page_text(self, page):
        self.requested_pages.append(page)
        if page in self.failing_pages:
            raise RuntimeError(f"page {page} is broken")
        return self.pages.get(page)

    def resolve_position(self, page):
        if not self.supports_positional_text or page < 1 or page > self.page_count:
            return None
        return ("pos", page)

    def text_between(self, start, end):
        self.between_calls.append((start, end))
        if self.positional_raises:
            raise RuntimeError("positional lookup exploded")
        return self.positional_text

    def close(self):
        self.closed = True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_toc():
    """TOC with a same-page tie and nested entries."""
    return [
        TocEntry(title="A", page=1, depth=0),
        TocEntry(title="B", page=10, depth=1),
        TocEntry(title="C", page=10, depth=0),
        TocEntry(title="D", page=20, depth=0),
    ]


@pytest.fixture
def fake_document():
    """Return a factory that creates FakeDocument instances."""
    def _factory(**kwargs):
        return FakeDocument(**kwargs)
    return _factory


@pytest.fixture
def settings(tmp_path):
    """Settings with an API key, no backoff delay and a temp summaries dir."""
    return Settings(
        api_key="sk-or-v1-test",
        model="test/model",
        prompt="Summarize.",
        max_summary_tokens=500,
        retry_delay=0,
        summaries_dir=tmp_path / "summaries",
    )

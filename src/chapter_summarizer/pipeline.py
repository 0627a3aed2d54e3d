"""Summarization pipeline: locate, extract, truncate, summarize, save."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from chapter_summarizer.core.chapter_locator import ChapterLocator
from chapter_summarizer.core.summary_client import SummaryClient
from chapter_summarizer.core.summary_store import SummaryStore
from chapter_summarizer.core.text_extractor import TextExtractor
from chapter_summarizer.core.token_budget import TokenBudgetEstimator
from chapter_summarizer.errors import StoreError, cancelled

if TYPE_CHECKING:
    from chapter_summarizer.core.document import DocumentHandle
    from chapter_summarizer.models.extraction import ExtractionResult
    from chapter_summarizer.models.settings import Settings
    from chapter_summarizer.models.summary import SummaryResponse
    from chapter_summarizer.models.toc import ChapterSpan

log = logging.getLogger(__name__)

# Chapters longer than this need confirmation before summarizing
LONG_CHAPTER_PAGES = 100


@dataclass
class SummaryOutcome:
    """Everything produced by one summarization run."""

    span: ChapterSpan
    extraction: ExtractionResult
    truncated: bool
    response: SummaryResponse
    saved_path: Path | None = None
    save_error: StoreError | None = None


class ChapterSummarizer:
    """Run the full summarization flow for the chapter at a reading position."""

    def __init__(
        self,
        settings: Settings,
        client: SummaryClient | None = None,
        store: SummaryStore | None = None,
    ):
        self.settings = settings
        self.locator = ChapterLocator()
        self.extractor = TextExtractor()
        self.budget = TokenBudgetEstimator()
        self.client = client or SummaryClient(settings)
        self.store = store or SummaryStore(settings.summaries_dir or Path("summaries"))

    def locate(self, doc: DocumentHandle, current_page: int) -> ChapterSpan:
        """Resolve the chapter containing ``current_page`` from the live TOC."""
        return self.locator.locate(doc.get_toc(), current_page, doc.get_page_count())

    def confirm_length(
        self,
        span: ChapterSpan,
        confirm_long: Callable[[ChapterSpan], bool] | None,
    ) -> None:
        """Ask ``confirm_long`` about chapters over ``LONG_CHAPTER_PAGES``.

        Raises:
            SummarizerError: ``CANCELLED`` when the chapter is declined.
        """
        if span.page_count > LONG_CHAPTER_PAGES and confirm_long is not None:
            if not confirm_long(span):
                raise cancelled(f"Skipped long chapter ({span.page_count} pages)")

    def summarize(
        self,
        doc: DocumentHandle,
        current_page: int,
        save: bool = False,
        confirm_long: Callable[[ChapterSpan], bool] | None = None,
        cancel_event: threading.Event | None = None,
        span: ChapterSpan | None = None,
    ) -> SummaryOutcome:
        """Summarize the chapter at ``current_page``.

        ``confirm_long`` is asked before summarizing chapters longer than
        ``LONG_CHAPTER_PAGES``; returning False cancels the run. Pass an
        already located ``span`` to skip reading the TOC again. A failed
        save is reported on the outcome and never discards the summary.

        Raises:
            SummarizerError: From any stage before the summary is produced.
        """
        if span is None:
            span = self.locate(doc, current_page)
        self.confirm_length(span, confirm_long)

        extraction = self.extractor.extract(span, doc)
        text = self.budget.truncate(extraction.text, self.settings.max_input_tokens)
        truncated = text != extraction.text

        request = self.client.build_request(span.title, text)
        log.info(
            f"Requesting summary of '{span.title}' "
            f"(~{self.budget.estimate(text):,} tokens) from {request.model}"
        )
        response = self.client.summarize(request, cancel_event=cancel_event)

        outcome = SummaryOutcome(
            span=span,
            extraction=extraction,
            truncated=truncated,
            response=response,
        )

        if save:
            try:
                outcome.saved_path = self.save(span.title, response)
            except StoreError as e:
                log.error(f"Summary generated but not saved: {e.message}")
                outcome.save_error = e

        return outcome

    def save(self, chapter_title: str, response: SummaryResponse) -> Path:
        """Persist a generated summary."""
        return self.store.save(chapter_title, response.content, self.settings.model)

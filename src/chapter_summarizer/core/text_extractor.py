"""Chapter text extraction with positional and page-by-page strategies."""

import logging
import re

from chapter_summarizer.core.document import DocumentHandle
from chapter_summarizer.errors import ExtractionError
from chapter_summarizer.models.extraction import ExtractionResult, ExtractionStrategy
from chapter_summarizer.models.toc import ChapterSpan

log = logging.getLogger(__name__)

# Pages read past start_page in the paginated fallback (51 pages at most)
MAX_EXTRA_PAGES = 50
PAGE_SEPARATOR = "\n\n"


def normalize_whitespace(text: str) -> str:
    """Normalize line endings and collapse redundant whitespace."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text


class TextExtractor:
    """Produce the plain text of a chapter span from a document."""

    def __init__(self, max_extra_pages: int = MAX_EXTRA_PAGES):
        self.max_extra_pages = max_extra_pages

    def extract(self, span: ChapterSpan, doc: DocumentHandle) -> ExtractionResult:
        """Extract and normalize chapter text.

        Tries the positional strategy for documents that support it, then
        falls back to reading pages one at a time.

        Raises:
            ExtractionError: If no text could be extracted.
        """
        result = None
        if doc.supports_positional_text:
            result = self._extract_positional(span, doc)
        if result is None:
            result = self._extract_paginated(span, doc)

        result.text = normalize_whitespace(result.text)
        if not result.text.strip():
            raise ExtractionError()

        log.info(
            f"Extracted {result.length:,} characters from '{span.title}' "
            f"({result.strategy.value})"
        )
        return result

    def _extract_positional(
        self, span: ChapterSpan, doc: DocumentHandle
    ) -> ExtractionResult | None:
        """Read the whole span in one call between two position markers."""
        try:
            start = doc.resolve_position(span.start_page)
            end = doc.resolve_position(span.end_page)
        except Exception as e:
            log.warning(f"Position lookup failed, falling back to pages: {e}")
            return None

        if start is None or end is None:
            log.info("Position markers unavailable, falling back to pages")
            return None

        try:
            text = doc.text_between(start, end)
        except Exception as e:
            log.warning(f"Positional extraction failed, falling back to pages: {e}")
            return None

        if not text:
            return None

        return ExtractionResult(
            text=text,
            strategy=ExtractionStrategy.POSITIONAL,
            pages_requested=span.page_count,
            pages_extracted=span.page_count,
        )

    def _extract_paginated(
        self, span: ChapterSpan, doc: DocumentHandle
    ) -> ExtractionResult:
        """Concatenate per-page text, skipping pages that fail."""
        last_page = min(span.end_page, span.start_page + self.max_extra_pages)
        capped = last_page < span.end_page
        if capped:
            log.warning(
                f"Chapter '{span.title}' spans {span.page_count} pages; "
                f"reading pages {span.start_page}-{last_page} only"
            )

        parts: list[str] = []
        for page in range(span.start_page, last_page + 1):
            try:
                page_text = doc.page_text(page)
            except Exception as e:
                log.debug(f"Skipping page {page}: {e}")
                continue
            if page_text:
                parts.append(page_text)

        return ExtractionResult(
            text=PAGE_SEPARATOR.join(parts),
            strategy=ExtractionStrategy.PAGINATED,
            pages_requested=last_page - span.start_page + 1,
            pages_extracted=len(parts),
            truncated_by_cap=capped,
        )

"""Resolve the chapter enclosing the reading position from a TOC."""

import logging
from collections.abc import Sequence

from chapter_summarizer.errors import chapter_not_determined, no_table_of_contents
from chapter_summarizer.models.toc import ChapterSpan, TocEntry

log = logging.getLogger(__name__)


class ChapterLocator:
    """Map a flattened TOC and a current page to a chapter span."""

    def locate(
        self,
        toc: Sequence[TocEntry],
        current_page: int,
        last_document_page: int,
    ) -> ChapterSpan:
        """Find the chapter containing ``current_page``.

        The scan keeps the last entry starting at or before the current
        page, so entries sharing a page resolve to the later one. It stops
        at the first entry past the current page. The chapter ends one page
        before the next entry at the same or a shallower depth, or at the
        last page of the document.

        Raises:
            ChapterError: NO_TABLE_OF_CONTENTS if the TOC is empty,
                CHAPTER_NOT_DETERMINED if the page precedes every entry.
        """
        if not toc:
            raise no_table_of_contents()

        current_index: int | None = None
        for i, entry in enumerate(toc):
            if entry.page <= current_page:
                current_index = i
            else:
                break

        if current_index is None:
            raise chapter_not_determined(current_page)

        current = toc[current_index]
        end_page = last_document_page
        for entry in toc[current_index + 1 :]:
            if entry.depth <= current.depth:
                end_page = entry.page - 1
                break

        # Out-of-order TOC pages must not produce an inverted span
        upper = max(current.page, last_document_page)
        end_page = max(current.page, min(end_page, upper))

        span = ChapterSpan(
            title=current.title,
            start_page=current.page,
            end_page=end_page,
            depth=current.depth,
        )
        log.debug(
            f"Located chapter '{span.title}' pages {span.start_page}-{span.end_page} "
            f"for page {current_page}"
        )
        return span

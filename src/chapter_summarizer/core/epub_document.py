"""Reflowable EPUB backend using ebooklib.

Each spine document counts as one page. Position markers point at spine
documents, so a whole chapter can be read in a single positional call.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote

import ebooklib
from ebooklib import epub

from chapter_summarizer.core.content_processor import ContentProcessor
from chapter_summarizer.core.document import DocumentHandle
from chapter_summarizer.models.toc import TocEntry

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EpubPosition:
    """Position of a spine document (0-based) inside the book."""

    spine_index: int
    fragment: str | None = None


class EpubDocument(DocumentHandle):
    """Reflowable document with positional text access."""

    supports_positional_text = True

    def __init__(self, epub_path: Path):
        self.path = epub_path
        try:
            self.book = epub.read_epub(str(epub_path))
        except Exception as e:
            raise ValueError(f"EPUB could not be read: {e}")
        self.processor = ContentProcessor()
        self._spine = self._build_spine()
        self._page_by_file = {
            item.get_name(): index + 1 for index, item in enumerate(self._spine)
        }

    def _build_spine(self) -> list:
        """Resolve the reading order to document items."""
        items = []
        for idref, _linear in self.book.spine:
            item = self.book.get_item_with_id(idref)
            if item is not None and item.get_type() == ebooklib.ITEM_DOCUMENT:
                items.append(item)
        return items

    def get_page_count(self) -> int:
        return len(self._spine)

    def get_toc(self) -> list[TocEntry]:
        """Flatten the navigation tree, mapping hrefs to spine pages."""
        entries: list[TocEntry] = []
        self._flatten_toc(self.book.toc, entries)
        return entries

    def _flatten_toc(self, toc_items: list, entries: list[TocEntry], depth: int = 0) -> None:
        """Recursively flatten TOC structure."""
        for item in toc_items:
            if isinstance(item, tuple):
                # Section with children: (Section, [children])
                section, children = item
                self._add_entry(section, depth, entries)
                self._flatten_toc(children, entries, depth + 1)
            elif isinstance(item, list):
                self._flatten_toc(item, entries, depth + 1)
            else:
                self._add_entry(item, depth, entries)

    def _add_entry(self, item: object, depth: int, entries: list[TocEntry]) -> None:
        href = getattr(item, "href", None)
        if not href:
            return
        page = self._page_for_href(href)
        if page is None:
            log.debug(f"TOC entry points outside the spine: {href}")
            return
        # Fall back to the document heading for untitled entries
        title = (
            getattr(item, "title", None)
            or self.processor.get_title(self._spine[page - 1].get_content())
            or "Untitled"
        )
        entries.append(TocEntry(title=title.strip(), page=page, depth=depth))

    def _page_for_href(self, href: str) -> int | None:
        file_ref = unquote(href.split("#")[0])
        if file_ref in self._page_by_file:
            return self._page_by_file[file_ref]
        # Some TOCs use paths relative to a different directory
        for name, page in self._page_by_file.items():
            if name.endswith("/" + file_ref) or file_ref.endswith("/" + name):
                return page
        return None

    def resolve_position(self, page: int) -> EpubPosition | None:
        if page < 1 or page > len(self._spine):
            return None
        return EpubPosition(spine_index=page - 1)

    def text_between(self, start: EpubPosition, end: EpubPosition) -> str | None:
        if start.spine_index > end.spine_index:
            return None
        parts = []
        for item in self._spine[start.spine_index : end.spine_index + 1]:
            text = self.processor.to_text(item.get_content())
            if text:
                parts.append(text)
        return "\n\n".join(parts) if parts else None

    def page_text(self, page: int) -> str | None:
        if page < 1 or page > len(self._spine):
            return None
        return self.processor.to_text(self._spine[page - 1].get_content()) or None

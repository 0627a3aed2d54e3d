"""Fixed-layout PDF backend using pypdf for the outline and pdfplumber for text."""

import logging
from pathlib import Path

# Suppress warnings about malformed PDF object references from PDF libraries
logging.getLogger("pdfminer").setLevel(logging.ERROR)
logging.getLogger("pypdf").setLevel(logging.ERROR)

import pdfplumber
import pypdf
from pypdf.errors import EmptyFileError, FileNotDecryptedError, PdfReadError

from chapter_summarizer.core.document import DocumentHandle
from chapter_summarizer.models.toc import TocEntry

log = logging.getLogger(__name__)


class PdfDocument(DocumentHandle):
    """Paginated document: text is only available page by page."""

    supports_positional_text = False

    def __init__(self, pdf_path: Path):
        self.path = pdf_path

        try:
            self._reader = pypdf.PdfReader(str(pdf_path))
        except FileNotDecryptedError:
            raise ValueError("PDF is encrypted. Please decrypt first.")
        except EmptyFileError:
            raise ValueError("PDF file is empty.")
        except PdfReadError as e:
            raise ValueError(f"PDF appears corrupted: {e}")

        self._plumber: pdfplumber.PDF | None = None

    def _get_plumber(self) -> pdfplumber.PDF:
        """Lazily open pdfplumber on first text request."""
        if self._plumber is None:
            self._plumber = pdfplumber.open(str(self.path))
        return self._plumber

    def get_page_count(self) -> int:
        return len(self._reader.pages)

    def get_toc(self) -> list[TocEntry]:
        """Flatten the PDF outline (bookmarks) into TOC entries."""
        try:
            outline = self._reader.outline
        except Exception as e:
            log.warning(f"Could not read PDF outline: {e}")
            return []

        entries: list[TocEntry] = []

        def flatten_outline(items: list, depth: int = 0) -> None:
            """Recursively flatten nested outline."""
            for item in items:
                if isinstance(item, list):
                    # Children of the preceding destination
                    flatten_outline(item, depth + 1)
                    continue
                try:
                    page_index = self._reader.get_destination_page_number(item)
                except Exception:
                    # Skip malformed destinations
                    continue
                if page_index is None or page_index < 0:
                    continue
                entries.append(
                    TocEntry(
                        title=(item.title or "Untitled").strip(),
                        page=page_index + 1,
                        depth=depth,
                    )
                )

        flatten_outline(outline or [])
        return entries

    def page_text(self, page: int) -> str | None:
        if page < 1 or page > self.get_page_count():
            return None
        return self._get_plumber().pages[page - 1].extract_text()

    def close(self) -> None:
        if self._plumber is not None:
            self._plumber.close()
            self._plumber = None

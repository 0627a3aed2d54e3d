"""Document handle interface and factory for opening books by format."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from chapter_summarizer.models.toc import TocEntry

# Opaque, backend-specific position inside a reflowable document
PositionMarker = Any


class DocumentHandle(ABC):
    """Read-only view of a document consumed by the extraction pipeline.

    Pages are 1-based. Text-returning calls may return None or raise;
    callers tolerate both per call.
    """

    #: True when the backend can return text between two position markers
    supports_positional_text: bool = False

    @abstractmethod
    def get_toc(self) -> list[TocEntry]:
        """Return the flattened table of contents in document order."""
        pass

    @abstractmethod
    def get_page_count(self) -> int:
        """Return the number of pages."""
        pass

    @abstractmethod
    def page_text(self, page: int) -> str | None:
        """Return the plain text of a single page."""
        pass

    def resolve_position(self, page: int) -> PositionMarker | None:
        """Return a stable position marker for the start of ``page``."""
        return None

    def text_between(self, start: PositionMarker, end: PositionMarker) -> str | None:
        """Return the text spanned by two position markers, inclusive."""
        return None

    def close(self) -> None:
        """Release backend resources."""

    def __enter__(self) -> "DocumentHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class DocumentFactory:
    """Factory for creating the appropriate document handle for a file."""

    SUPPORTED_FORMATS = {
        ".epub": "epub",
        ".pdf": "pdf",
    }

    @classmethod
    def open(cls, path: Path) -> DocumentHandle:
        """Open a document handle for the given file.

        Raises:
            ValueError: If file format is not supported
            FileNotFoundError: If file does not exist
        """
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        suffix = path.suffix.lower()

        if suffix not in cls.SUPPORTED_FORMATS:
            supported = ", ".join(cls.SUPPORTED_FORMATS.keys())
            raise ValueError(
                f"Unsupported format: {suffix}. Supported formats: {supported}"
            )

        if suffix == ".epub":
            from chapter_summarizer.core.epub_document import EpubDocument

            return EpubDocument(path)

        from chapter_summarizer.core.pdf_document import PdfDocument

        return PdfDocument(path)

    @classmethod
    def detect_format(cls, path: Path) -> str:
        """Detect file format from extension ("epub", "pdf", or "unknown")."""
        return cls.SUPPORTED_FORMATS.get(path.suffix.lower(), "unknown")

    @classmethod
    def is_supported(cls, path: Path) -> bool:
        """Check if file format is supported."""
        return path.suffix.lower() in cls.SUPPORTED_FORMATS

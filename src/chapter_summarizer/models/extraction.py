"""Data models for chapter text extraction."""

from enum import Enum

from pydantic import BaseModel


class ExtractionStrategy(str, Enum):
    """Strategy used to pull chapter text out of a document."""

    POSITIONAL = "positional"
    PAGINATED = "paginated"


class ExtractionResult(BaseModel):
    """Normalized chapter text and how it was obtained."""

    text: str
    strategy: ExtractionStrategy
    pages_requested: int = 0
    pages_extracted: int = 0
    truncated_by_cap: bool = False  # Paginated only: span exceeded the page cap

    @property
    def length(self) -> int:
        """Character length of the extracted text."""
        return len(self.text)

    @property
    def byte_length(self) -> int:
        """UTF-8 byte length of the extracted text."""
        return len(self.text.encode("utf-8"))

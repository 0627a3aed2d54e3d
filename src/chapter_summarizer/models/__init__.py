"""Data models."""

from chapter_summarizer.models.extraction import (
    ExtractionResult,
    ExtractionStrategy,
)
from chapter_summarizer.models.settings import Settings
from chapter_summarizer.models.summary import (
    SummaryRecord,
    SummaryRequest,
    SummaryResponse,
    Usage,
)
from chapter_summarizer.models.toc import ChapterSpan, TocEntry

__all__ = [
    # TOC models
    "TocEntry",
    "ChapterSpan",
    # Extraction models
    "ExtractionStrategy",
    "ExtractionResult",
    # Summary models
    "SummaryRequest",
    "SummaryResponse",
    "Usage",
    "SummaryRecord",
    # Settings
    "Settings",
]

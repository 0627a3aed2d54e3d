"""Data models for table of contents and chapter boundaries."""

from pydantic import BaseModel, Field, model_validator


class TocEntry(BaseModel):
    """Single entry in a flattened table of contents."""

    title: str
    page: int = Field(ge=1)
    depth: int = Field(default=0, ge=0)  # 0 = top-level


class ChapterSpan(BaseModel):
    """Inclusive page range attributed to one TOC entry."""

    title: str
    start_page: int
    end_page: int
    depth: int = 0

    @model_validator(mode="after")
    def _check_bounds(self) -> "ChapterSpan":
        if self.start_page > self.end_page:
            raise ValueError(
                f"start_page ({self.start_page}) exceeds end_page ({self.end_page})"
            )
        return self

    @property
    def page_count(self) -> int:
        """Number of pages in the span."""
        return self.end_page - self.start_page + 1

"""Typed error taxonomy shared by every pipeline stage."""

from enum import Enum


class ErrorKind(str, Enum):
    """Distinct failure classes, mapped to user-facing messages by the CLI."""

    NO_TABLE_OF_CONTENTS = "no_table_of_contents"
    CHAPTER_NOT_DETERMINED = "chapter_not_determined"
    EXTRACTION_FAILED = "extraction_failed"
    MISSING_API_KEY = "missing_api_key"
    INVALID_API_KEY = "invalid_api_key"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    RATE_LIMITED = "rate_limited"
    API_ERROR = "api_error"
    EMPTY_RESPONSE = "empty_response"
    NETWORK_ERROR = "network_error"
    DECODE_ERROR = "decode_error"
    CANCELLED = "cancelled"
    IO_ERROR = "io_error"


RETRYABLE_KINDS = frozenset(
    {
        ErrorKind.RATE_LIMITED,
        ErrorKind.EMPTY_RESPONSE,
        ErrorKind.NETWORK_ERROR,
    }
)


class SummarizerError(Exception):
    """Base error carrying a machine-readable kind."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        code: int | None = None,
        retryable: bool | None = None,
    ):
        self.kind = kind
        self.message = message
        self.code = code
        self.retryable = kind in RETRYABLE_KINDS if retryable is None else retryable
        super().__init__(f"{kind.value}: {message}")


class ChapterError(SummarizerError):
    """The current chapter could not be located in the TOC."""


class ExtractionError(SummarizerError):
    """No text could be extracted for the chapter."""

    def __init__(self, message: str = "No text could be extracted for this chapter"):
        super().__init__(ErrorKind.EXTRACTION_FAILED, message)


class SummaryError(SummarizerError):
    """Failure talking to the summarization API."""


class StoreError(SummarizerError):
    """Failure reading or writing saved summaries."""

    def __init__(self, message: str):
        super().__init__(ErrorKind.IO_ERROR, message)


def no_table_of_contents() -> ChapterError:
    return ChapterError(
        ErrorKind.NO_TABLE_OF_CONTENTS, "This document has no table of contents"
    )


def chapter_not_determined(page: int) -> ChapterError:
    return ChapterError(
        ErrorKind.CHAPTER_NOT_DETERMINED,
        f"Could not determine the chapter containing page {page}",
    )


def cancelled(message: str = "Request cancelled") -> SummaryError:
    return SummaryError(ErrorKind.CANCELLED, message)

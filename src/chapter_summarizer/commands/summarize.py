"""Summarize command implementation."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm

from chapter_summarizer.core.document import DocumentFactory
from chapter_summarizer.errors import ErrorKind, SummarizerError
from chapter_summarizer.models.settings import Settings
from chapter_summarizer.models.toc import ChapterSpan
from chapter_summarizer.pipeline import ChapterSummarizer, SummaryOutcome

ERROR_MESSAGES = {
    ErrorKind.NO_TABLE_OF_CONTENTS: "This document has no table of contents",
    ErrorKind.CHAPTER_NOT_DETERMINED: "Could not determine current chapter",
    ErrorKind.EXTRACTION_FAILED: "Failed to extract text",
    ErrorKind.MISSING_API_KEY: "Please configure your OpenRouter API key "
    "(chapter-summarizer config set --api-key ...)",
    ErrorKind.INVALID_API_KEY: "Invalid API key",
    ErrorKind.INSUFFICIENT_CREDITS: "Insufficient credits",
    ErrorKind.RATE_LIMITED: "Rate limited, try again later",
    ErrorKind.EMPTY_RESPONSE: "No response from the model",
    ErrorKind.NETWORK_ERROR: "Network error",
    ErrorKind.DECODE_ERROR: "Could not read the API response",
    ErrorKind.CANCELLED: "Cancelled",
    ErrorKind.IO_ERROR: "Could not access saved summaries",
}


def describe_error(error: SummarizerError) -> str:
    """Map an error kind to a user-facing message."""
    if error.kind == ErrorKind.API_ERROR:
        return error.message
    base = ERROR_MESSAGES.get(error.kind, "Unexpected error")
    if error.kind in (ErrorKind.NETWORK_ERROR, ErrorKind.CANCELLED, ErrorKind.IO_ERROR):
        return f"{base}: {error.message}"
    return base


def format_usage_footer(outcome: SummaryOutcome) -> str:
    """Token and cost readout shown under the summary."""
    usage = outcome.response.usage
    if usage is None:
        return ""
    return (
        f"\n\n[dim]Tokens: {usage.prompt_tokens}+{usage.completion_tokens}"
        f"={usage.total_tokens}  Cost: ${usage.estimated_cost():.4f}[/]"
    )


def confirm_long_chapter(span: ChapterSpan, console: Console) -> bool:
    return Confirm.ask(
        f"Long chapter ({span.page_count} pages). Continue?",
        console=console,
        default=False,
    )


def execute_summarize(
    book_path: Path,
    page: int,
    settings: Settings,
    console: Console,
    save: bool = False,
    assume_yes: bool = False,
    quiet: bool = False,
) -> SummaryOutcome:
    """Execute the summarize command.

    Raises:
        SummarizerError: Any pipeline failure; the caller reports it.
    """
    summarizer = ChapterSummarizer(settings)

    try:
        with DocumentFactory.open(book_path) as doc:
            # Ask before the spinner starts
            span = summarizer.locate(doc, page)
            if not assume_yes:
                summarizer.confirm_length(span, lambda s: confirm_long_chapter(s, console))

            with console.status("[cyan]Extracting text and generating summary...[/]"):
                outcome = summarizer.summarize(doc, page, save=save, span=span)
    finally:
        summarizer.client.close()

    if quiet:
        console.print(outcome.response.content)
        return outcome

    span = outcome.span
    notes = []
    if outcome.extraction.truncated_by_cap:
        notes.append(
            f"read {outcome.extraction.pages_requested} of {span.page_count} pages"
        )
    if outcome.truncated:
        notes.append("text truncated to fit the token budget")
    subtitle = f"pages {span.start_page}-{span.end_page}"
    if notes:
        subtitle += " | " + ", ".join(notes)

    console.print()
    console.print(
        Panel(
            f"[bold]Chapter: {escape(span.title)}[/]\n\n{escape(outcome.response.content)}"
            f"{format_usage_footer(outcome)}",
            title="Chapter Summary",
            subtitle=subtitle,
            border_style="green",
        )
    )

    if outcome.saved_path is not None:
        console.print(f"[green]Saved:[/] {outcome.saved_path}")
    elif outcome.save_error is not None:
        console.print(f"[yellow]Not saved:[/] {describe_error(outcome.save_error)}")

    return outcome

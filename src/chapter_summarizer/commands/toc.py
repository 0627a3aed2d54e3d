"""TOC and locate command implementations."""

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from chapter_summarizer.core.chapter_locator import ChapterLocator
from chapter_summarizer.core.document import DocumentFactory


def execute_toc(book_path: Path, console: Console, page: int | None = None) -> None:
    """Print the flattened TOC, highlighting the chapter containing ``page``."""
    with DocumentFactory.open(book_path) as doc:
        toc = doc.get_toc()
        page_count = doc.get_page_count()

    console.print(
        f"[dim]Format:[/] {DocumentFactory.detect_format(book_path).upper()}  "
        f"[dim]Pages:[/] {page_count}"
    )

    if not toc:
        console.print("[yellow]This document has no table of contents[/]")
        return

    current_title = None
    current_start = None
    if page is not None:
        span = ChapterLocator().locate(toc, page, page_count)
        current_title, current_start = span.title, span.start_page

    table = Table(title="Table of Contents", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", style="white")
    table.add_column("Page", justify="right", style="green")

    for i, entry in enumerate(toc):
        title = "  " * entry.depth + escape(entry.title)
        style = None
        if entry.title == current_title and entry.page == current_start:
            style = "bold yellow"
        table.add_row(str(i + 1), title, str(entry.page), style=style)

    console.print(table)


def execute_locate(book_path: Path, page: int, console: Console) -> None:
    """Print the chapter span for a reading position."""
    with DocumentFactory.open(book_path) as doc:
        span = ChapterLocator().locate(doc.get_toc(), page, doc.get_page_count())

    console.print(f"[bold]{escape(span.title)}[/]")
    console.print(
        f"[dim]Pages:[/] {span.start_page}-{span.end_page} "
        f"({span.page_count} pages, depth {span.depth})"
    )

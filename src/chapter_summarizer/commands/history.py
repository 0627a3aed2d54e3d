"""Summary history command implementations."""

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from chapter_summarizer.core.summary_store import SummaryStore


def execute_history_list(store: SummaryStore, console: Console) -> None:
    """List saved summaries, newest first."""
    records = store.list()
    if not records:
        console.print("[dim]No summaries yet[/]")
        return

    table = Table(title="Summary History", show_header=True, header_style="bold cyan")
    table.add_column("Date", style="dim")
    table.add_column("Chapter", style="white")
    table.add_column("Model", style="dim")
    table.add_column("File", style="dim")

    for record in records:
        title = record.chapter_title
        short_title = title[:50] + "..." if len(title) > 50 else title
        table.add_row(
            record.timestamp.strftime("%Y-%m-%d %H:%M"),
            escape(short_title),
            escape(record.model),
            record.path.name if record.path else "",
        )

    console.print(table)


def execute_history_show(store: SummaryStore, file: Path, console: Console) -> None:
    """Print a saved summary."""
    content = store.load(file)
    console.print(Panel(escape(content.rstrip()), title="Saved Summary", border_style="blue"))


def execute_history_delete(store: SummaryStore, file: Path, console: Console) -> None:
    """Delete a saved summary."""
    store.delete(file)
    console.print(f"[green]Deleted {Path(file).name}[/]")

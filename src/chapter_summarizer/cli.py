"""Main CLI application."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from chapter_summarizer.config import SettingsManager
from chapter_summarizer.core.document import DocumentFactory
from chapter_summarizer.core.summary_store import SummaryStore
from chapter_summarizer.errors import SummarizerError
from chapter_summarizer.models.settings import clamp_summary_tokens

app = typer.Typer(
    name="chapter-summarizer",
    help="Summarize the current chapter of a PDF/EPUB with an OpenRouter model.",
    add_completion=False,
)

console = Console()

# History subcommand group
history_app = typer.Typer(help="Saved summary commands")
app.add_typer(history_app, name="history")

# Config subcommand group
config_app = typer.Typer(help="Settings commands")
app.add_typer(config_app, name="config")


def setup_logging(verbose: bool) -> None:
    """Route package logging through rich on stderr."""
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logger = logging.getLogger("chapter_summarizer")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def fail(message: str) -> typer.Exit:
    console.print(f"[red]{message}[/]")
    return typer.Exit(1)


def check_book(book_path: Path) -> None:
    if not DocumentFactory.is_supported(book_path):
        console.print(f"[red]Unsupported file format: {book_path.suffix}[/]")
        console.print("[dim]Supported formats: .epub, .pdf[/]")
        raise typer.Exit(1)


BookArgument = Annotated[
    Path,
    typer.Argument(
        help="Path to the book file (EPUB or PDF)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """Summarize the current chapter of a PDF/EPUB with an OpenRouter model."""
    setup_logging(verbose)


@app.command()
def summarize(
    book_path: BookArgument,
    page: Annotated[
        int,
        typer.Option("--page", "-p", help="Current reading page (1-based)", min=1),
    ],
    save: Annotated[
        bool,
        typer.Option("--save", "-s", help="Save the summary to history"),
    ] = False,
    assume_yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip the long chapter confirmation"),
    ] = False,
    model: Annotated[
        Optional[str],
        typer.Option("--model", "-m", help="Override the configured model"),
    ] = None,
    max_tokens: Annotated[
        Optional[int],
        typer.Option("--max-tokens", help="Override summary length (100-2000 tokens)"),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Print only the summary text"),
    ] = False,
) -> None:
    """Summarize the chapter containing the given page."""
    check_book(book_path)

    settings = SettingsManager().load()
    overrides: dict = {}
    if model:
        overrides["model"] = model.strip()
    if max_tokens is not None:
        overrides["max_summary_tokens"] = clamp_summary_tokens(max_tokens)
    if overrides:
        settings = settings.model_copy(update=overrides)

    from chapter_summarizer.commands.summarize import describe_error, execute_summarize

    try:
        execute_summarize(
            book_path=book_path,
            page=page,
            settings=settings,
            console=console,
            save=save,
            assume_yes=assume_yes,
            quiet=quiet,
        )
    except SummarizerError as e:
        raise fail(describe_error(e))
    except Exception as e:
        raise fail(f"Error: {e}")


@app.command()
def toc(
    book_path: BookArgument,
    page: Annotated[
        Optional[int],
        typer.Option("--page", "-p", help="Highlight the chapter containing this page", min=1),
    ] = None,
) -> None:
    """Display the flattened table of contents."""
    check_book(book_path)

    from chapter_summarizer.commands.summarize import describe_error
    from chapter_summarizer.commands.toc import execute_toc

    try:
        execute_toc(book_path, console, page=page)
    except SummarizerError as e:
        raise fail(describe_error(e))
    except Exception as e:
        raise fail(f"Error reading file: {e}")


@app.command()
def locate(
    book_path: BookArgument,
    page: Annotated[
        int,
        typer.Option("--page", "-p", help="Current reading page (1-based)", min=1),
    ],
) -> None:
    """Show the page range of the chapter containing the given page."""
    check_book(book_path)

    from chapter_summarizer.commands.summarize import describe_error
    from chapter_summarizer.commands.toc import execute_locate

    try:
        execute_locate(book_path, page, console)
    except SummarizerError as e:
        raise fail(describe_error(e))
    except Exception as e:
        raise fail(f"Error reading file: {e}")


def _store() -> SummaryStore:
    settings = SettingsManager().load()
    return SummaryStore(settings.summaries_dir)


@history_app.command("list")
def history_list() -> None:
    """List saved summaries, newest first."""
    from chapter_summarizer.commands.history import execute_history_list

    execute_history_list(_store(), console)


@history_app.command("show")
def history_show(
    file: Annotated[Path, typer.Argument(help="Summary file name or path")],
) -> None:
    """Print a saved summary."""
    from chapter_summarizer.commands.history import execute_history_show

    try:
        execute_history_show(_store(), file, console)
    except SummarizerError as e:
        raise fail(e.message)


@history_app.command("delete")
def history_delete(
    file: Annotated[Path, typer.Argument(help="Summary file name or path")],
) -> None:
    """Delete a saved summary."""
    from chapter_summarizer.commands.history import execute_history_delete

    try:
        execute_history_delete(_store(), file, console)
    except SummarizerError as e:
        raise fail(e.message)


@config_app.command("show")
def config_show() -> None:
    """Show the current settings."""
    manager = SettingsManager()
    settings = manager.load()

    table = Table(title="Settings", show_header=True, header_style="bold cyan")
    table.add_column("Key", style="dim")
    table.add_column("Value", style="white")

    key = settings.api_key
    masked = f"{key[:8]}...{key[-4:]}" if len(key) > 12 else ("(set)" if key else "(not set)")
    table.add_row("api_key", masked)
    table.add_row("model", settings.model)
    table.add_row("prompt", settings.prompt)
    table.add_row("max_summary_tokens", str(settings.max_summary_tokens))
    table.add_row("endpoint", settings.endpoint)
    table.add_row("summaries_dir", str(settings.summaries_dir))
    table.add_row("settings file", str(manager.settings_path))

    console.print(table)


@config_app.command("set")
def config_set(
    api_key: Annotated[
        Optional[str], typer.Option("--api-key", help="OpenRouter API key")
    ] = None,
    model: Annotated[Optional[str], typer.Option("--model", "-m", help="Model")] = None,
    prompt: Annotated[
        Optional[str], typer.Option("--prompt", help="System prompt")
    ] = None,
    max_tokens: Annotated[
        Optional[int],
        typer.Option("--max-tokens", help="Max summary tokens (clamped to 100-2000)"),
    ] = None,
) -> None:
    """Update and save settings."""
    if all(v is None for v in (api_key, model, prompt, max_tokens)):
        raise fail("Nothing to set. See --help for options.")

    manager = SettingsManager()
    try:
        updated = manager.save(
            manager.load(),
            api_key=api_key,
            model=model,
            prompt=prompt,
            max_summary_tokens=max_tokens,
        )
    except SummarizerError as e:
        raise fail(e.message)

    console.print("[green]Settings saved![/]")
    if max_tokens is not None and updated.max_summary_tokens != max_tokens:
        console.print(f"[dim]max_summary_tokens clamped to {updated.max_summary_tokens}[/]")


if __name__ == "__main__":
    app()

"""Command-line interface for stash using Rich and Typer."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from stash.core.ai import AiError
from stash.core.config import LOG_FILE, setup_logging, validate_notes_environment
from stash.core.query import (
    QueryError,
    SearchArgs,
    parse_search_args,
    project_counts,
    search,
    tag_counts,
)
from stash.core.settings import SettingsStore
from stash.core.types import NoteSource, SearchResult
from stash.interfaces.tui.app import run_interactive
from stash.session import actions
from stash.session.factory import build_ai_client, build_session, load_settings
from stash.vault.layout import get_config_file, get_notes_dir
from stash.vault.notes import NoteRepository, NoteStoreError

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="stash",
    help="Stash - quick notes, tags and projects in your terminal",
    no_args_is_help=False,
)

console = Console()
err_console = Console(stderr=True)


@dataclass
class CliOptions:
    """Global options shared by every command."""

    notes_dir: Path
    config_file: Path
    debug: bool = False


def _options(ctx: typer.Context) -> CliOptions:
    if isinstance(ctx.obj, CliOptions):
        return ctx.obj
    return CliOptions(notes_dir=get_notes_dir(), config_file=get_config_file())


def _fail(message: str) -> NoReturn:
    err_console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


def print_results(results: list[SearchResult], query: str) -> None:
    """Print ranked search results."""
    if not results:
        console.print(f"[dim]No notes match '{query}'.[/dim]")
        return

    console.print(f"[bold]{len(results)}[/bold] note(s) match '{query}'\n")
    for result in results:
        note = result.note
        heading = Text(note.display_title, style="bold green" if result.title_match else "bold")
        heading.append(f"  score {result.score}", style="dim")
        lines = [heading]
        if result.tag_matches or result.project_matches:
            matched = " ".join(
                [f"#{t}" for t in result.tag_matches]
                + [f"+{p}" for p in result.project_matches]
            )
            lines.append(Text(f"matched: {matched}", style="cyan"))
        for snippet in result.snippets:
            lines.append(Text(f"  {snippet}"))
        if result.path:
            lines.append(Text(str(result.path), style="dim"))
        for line in lines:
            console.print(line)
        console.print()


def print_counts(title: str, marker: str, counts: list[tuple[str, int]]) -> None:
    """Print tag or project counts as a table."""
    if not counts:
        console.print(f"[dim]No {title.lower()} yet.[/dim]")
        return
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Name", style="green")
    table.add_column("Notes", justify="right")
    for name, count in counts:
        table.add_row(f"{marker}{name}", str(count))
    console.print(table)


def run_search(
    options: CliOptions,
    args: SearchArgs,
    tags: Optional[str] = None,
    projects: Optional[str] = None,
) -> None:
    """Execute a validated search against the notes folder."""
    repo = NoteRepository(options.notes_dir)
    notes = [n for n in repo.load_all() if not n.is_deleted]

    if args.list_tags:
        print_counts("Tags", "#", tag_counts(notes))
    if args.list_projects:
        print_counts("Projects", "+", project_counts(notes))
    if args.list_tags or args.list_projects:
        return

    results = search(
        notes,
        args.query,
        case_sensitive=args.case_sensitive,
        tag_filter=tags,
        project_filter=projects,
        path_for=repo.path_for,
    )
    print_results(results, args.query)


def _run_ui(options: CliOptions, start_in_add: bool = False) -> None:
    setup_logging(log_file=LOG_FILE, level="DEBUG" if options.debug else None)
    is_valid, message = validate_notes_environment(options.notes_dir)
    if not is_valid:
        _fail(message)
    session = build_session(options.notes_dir, options.config_file)
    if start_in_add:
        actions.open_add(session)
    run_interactive(session)


@app.command()
def add(
    ctx: typer.Context,
    content: str = typer.Argument(..., help="Note content; #tags and +projects are picked up"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Note title"),
):
    """Quickly capture a note."""
    options = _options(ctx)
    repo = NoteRepository(options.notes_dir)
    try:
        note = repo.create(content, title=title, source=NoteSource.QUICK_CAPTURE)
    except NoteStoreError as e:
        _fail(str(e))
    console.print("[green]note saved successfully[/green]")
    console.print(f"[dim]{repo.path_for(note.id)}[/dim]")


@app.command()
def new(ctx: typer.Context):
    """Open the interactive session on a new note."""
    _run_ui(_options(ctx), start_in_add=True)


@app.command("search", context_settings={"ignore_unknown_options": True})
def search_command(
    ctx: typer.Context,
    query: str = typer.Argument("", help="Query, e.g. '#rust +webapp error handling'"),
    tags: Optional[str] = typer.Option(
        None, "--tags", "-t", help="Comma-separated tags; notes must have one"
    ),
    projects: Optional[str] = typer.Option(
        None, "--projects", "-p", help="Comma-separated projects; notes must have one"
    ),
    list_tags: bool = typer.Option(False, "--list-tags", help="List all tags"),
    list_projects: bool = typer.Option(
        False, "--list-projects", help="List all projects"
    ),
    case_sensitive: bool = typer.Option(
        False, "--case-sensitive", help="Case-sensitive text matching"
    ),
):
    """Search notes."""
    args = SearchArgs(
        query=query.strip(),
        list_tags=list_tags,
        list_projects=list_projects,
        case_sensitive=case_sensitive,
    )
    run_search(_options(ctx), args, tags=tags, projects=projects)


@app.command()
def ai(
    ctx: typer.Context,
    text: list[str] = typer.Argument(..., help="What you're looking for, in plain words"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Run without confirming"),
):
    """Search with a natural-language request."""
    options = _options(ctx)
    settings, error = load_settings(SettingsStore(options.config_file))
    if error:
        err_console.print(f"[yellow]{error}[/yellow]")
    client = build_ai_client(settings)
    if not client.is_configured():
        _fail("ai api key not configured (set it in the settings screen or ANTHROPIC_API_KEY)")

    request = " ".join(text)
    try:
        with console.status("[bold blue]Thinking...[/bold blue]"):
            generated = asyncio.run(client.translate_query(request))
    except AiError as e:
        _fail(str(e))

    try:
        args = parse_search_args(generated)
    except QueryError as e:
        _fail(f"rejected ai query '{generated}': {e}")

    console.print(Panel(generated, title="Generated search", border_style="blue"))
    if not yes and not typer.confirm("Run this search?", default=True):
        console.print("[dim]Cancelled.[/dim]")
        return
    run_search(options, args)


@app.command()
def ui(ctx: typer.Context):
    """Start the interactive session."""
    _run_ui(_options(ctx))


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    notes_dir: Optional[str] = typer.Option(
        None,
        "--notes-dir",
        help="Notes folder (default: ~/.stash/notes or $STASH_NOTES_DIR)",
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        help="Settings file (default: ~/.stash/config.yaml or $STASH_CONFIG_FILE)",
    ),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """Stash - quick notes, tags and projects in your terminal."""
    ctx.obj = CliOptions(
        notes_dir=Path(notes_dir).expanduser() if notes_dir else get_notes_dir(),
        config_file=Path(config).expanduser() if config else get_config_file(),
        debug=debug,
    )
    if ctx.invoked_subcommand is None:
        # Default to the interactive session
        _run_ui(ctx.obj)
    elif debug:
        setup_logging(level="DEBUG")


def run_cli():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run_cli()

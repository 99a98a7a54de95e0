#!/usr/bin/env python3
"""
Productive Sync CLI

Typer + Rich front end: turns today's git commits and Codex prompts into
Productive time entries, one per booked service.
"""

import logging
import sys
from enum import Enum
from typing import Optional

import click
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from .bookings import fetch_bookings
from .config import ApiCredentials, Config, ConfigError, parse_scan_dirs, require_env, today_iso, validate_date
from .models import ResolvedBooking
from .notes import truncate
from .productive_api import ProductiveClient
from .service_folders import MARKER_FILE, discover_service_folders
from .sync import Decision, RunSummary, run_sync

app = typer.Typer(
    name="productive-sync",
    help="Create Productive time entries from git commits and Codex sessions",
    no_args_is_help=False,
)
console = Console()
logger = logging.getLogger(__name__)

EDIT_SENTINEL = "."


def setup_logging(debug: bool = False):
    """Route all logging through Rich; --debug shows request-level detail"""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    for noisy in ("urllib3", "httpx", "httpcore", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


class PromptState(Enum):
    AWAITING_DECISION = "awaiting_decision"
    EDITING = "editing"


class ConfirmPrompt:
    """
    Interactive confirmation before each submission

    awaiting decision: y(es) submits, e(dit) starts editing, s(kip) skips
    the booking, c(ancel) stops the remaining bookings.
    editing: lines are read until a line with a single "." and replace
    the note; an empty edit keeps the current note.
    """

    def __init__(self, console: Console = console):
        self.console = console

    def __call__(self, booking: ResolvedBooking, note: str) -> tuple[Decision, str]:
        self.show(booking, note)
        state = PromptState.AWAITING_DECISION

        while True:
            if state is PromptState.EDITING:
                edited = self.read_note()
                if edited:
                    note = truncate(edited)
                self.show(booking, note)
                state = PromptState.AWAITING_DECISION
                continue

            answer = Prompt.ask(
                escape("Submit this entry? [y]es / [e]dit note / [s]kip / [c]ancel remaining"),
                console=self.console,
            ).strip().lower()

            if answer in ("y", "yes"):
                return Decision.SUBMIT, note
            if answer in ("e", "edit"):
                state = PromptState.EDITING
            elif answer in ("s", "skip"):
                return Decision.SKIP, note
            elif answer in ("c", "cancel"):
                return Decision.CANCEL, note

    def show(self, booking: ResolvedBooking, note: str):
        self.console.print(Panel(
            escape(note) if note else "[dim](no activity notes)[/dim]",
            title=escape(f"Ready To Submit: {booking.label} ({booking.time_minutes} min)"),
        ))

    def read_note(self) -> str:
        self.console.print(f"[dim]Enter the new note, finish with a line containing only '{EDIT_SENTINEL}'[/dim]")
        lines = []
        while True:
            line = self.console.input()
            if line.strip() == EDIT_SENTINEL:
                break
            lines.append(line)
        return "\n".join(lines).strip()


def display_summary(summary: RunSummary):
    """Print the run counters as a table"""
    table = Table(title=f"Summary {summary.date}")
    table.add_column("Item", style="cyan")
    table.add_column("Count", style="magenta", justify="right")

    table.add_row("Bookings", str(summary.bookings))
    table.add_row("Service IDs with .productive folders", str(summary.service_ids))
    table.add_row("Folders with .productive", str(summary.mapped_folders))
    table.add_row("Git repos with activity", str(summary.git_repos))
    table.add_row("Codex sessions with activity", str(summary.codex_sessions))
    table.add_row("Bookings without mapped folders", str(summary.without_folders))
    table.add_row("Bookings with no activity", str(summary.without_activity))
    table.add_row("[green]Created[/green]", str(summary.created))
    table.add_row("[yellow]Skipped[/yellow]", str(summary.skipped))
    table.add_row("[red]Failed[/red]", str(summary.failed))

    console.print(table)
    if summary.cancelled:
        console.print("[yellow]Run ended early due to user cancellation.[/yellow]")


def fail(message: str) -> typer.Exit:
    console.print(f"[red]{escape(message)}[/red]")
    return typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    date: Optional[str] = typer.Option(None, "--date", "-d", help="Use a specific date (YYYY-MM-DD) instead of today"),
    confirm: bool = typer.Option(False, "--confirm", "-c", help="Prompt before submitting each time entry"),
    debug: bool = typer.Option(False, "--debug", help="Show debug logging"),
):
    """
    Productive Sync - submit today's work to Productive

    Usage:
      productive-sync                      # sync today
      productive-sync --date 2026-02-12    # sync another day
      productive-sync --confirm            # review each note first
      productive-sync bookings             # list today's bookings
      productive-sync folders              # list .productive folders
    """
    load_dotenv()
    ctx.obj = {"debug": debug}
    if ctx.invoked_subcommand is not None:
        return

    try:
        config = Config.from_env(date=date, confirm=confirm)
    except ConfigError as e:
        console.print("[dim]Copy .env.example to .env and fill in your values.[/dim]")
        raise fail(str(e))

    setup_logging(debug)

    try:
        summary = run_sync(config, confirmer=ConfirmPrompt() if confirm else None)
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        raise typer.Exit(code=1)

    display_summary(summary)
    raise typer.Exit(code=summary.exit_code)


@app.command()
def bookings(
    ctx: typer.Context,
    date: Optional[str] = typer.Option(None, "--date", "-d", help="List bookings for this date (default: today)"),
    debug_client: bool = typer.Option(False, "--debug-client", help="Show where the billed client came from"),
):
    """List the resolved bookings and the service id each .productive file should hold"""
    try:
        run_date = validate_date(date) if date else today_iso()
        person_id = require_env("PRODUCTIVE_PERSON_ID")
        credentials = ApiCredentials.from_env()
    except ConfigError as e:
        raise fail(str(e))

    setup_logging((ctx.obj or {}).get("debug", False))

    try:
        resolved = fetch_bookings(ProductiveClient(credentials), person_id, run_date)
    except Exception as e:
        logger.exception(f"Failed to list bookings: {e}")
        raise typer.Exit(code=1)

    console.print(f"[bold]Bookings for {run_date}:[/bold]")
    if not resolved:
        console.print("[yellow]No bookings found.[/yellow]")
        return

    for booking in resolved:
        console.print(f"- Booking name: [white]{escape(booking.service_name)}[/white]")
        console.print(f"  Billed client: {escape(booking.billed_client or 'Unknown')}")
        console.print(f"  Service number: {booking.service_number}")
        console.print(f"  Service ID ({MARKER_FILE}): [cyan]{booking.service_id}[/cyan]")
        if debug_client:
            source = "deal.company" if booking.billed_client else "unresolved"
            console.print(f"  [dim]Client source: {source}[/dim]")


@app.command()
def folders(ctx: typer.Context):
    """List folders under SCAN_DIRS that carry a .productive file"""
    try:
        scan_dirs = parse_scan_dirs(require_env("SCAN_DIRS"))
    except ConfigError as e:
        raise fail(str(e))

    setup_logging((ctx.obj or {}).get("debug", False))
    service_folders = discover_service_folders(scan_dirs)

    if not service_folders:
        console.print(f"[yellow]No {MARKER_FILE} files found[/yellow]")
        return

    table = Table(title=f"{MARKER_FILE} folders")
    table.add_column("Service ID", style="cyan")
    table.add_column("Folder", style="white")
    for service_id, paths in sorted(service_folders.items()):
        for path in paths:
            table.add_row(service_id, path)

    console.print(table)


def run():
    """Console entry point; usage errors exit 1 like other configuration errors"""
    try:
        code = app(standalone_mode=False)
    except click.UsageError as e:
        e.show()
        sys.exit(1)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        console.print("[red]Aborted.[/red]")
        sys.exit(1)
    sys.exit(code or 0)


if __name__ == "__main__":
    run()

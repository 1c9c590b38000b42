"""Typer-based CLI for lmsnotes."""

import json
import logging
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .canvas.client import CanvasClient, SyncError
from .canvas.reconciler import AssignmentReconciler, SyncInProgressError
from .canvas.vault import VaultStorage
from .config import LmsNotesConfig
from .course_rules import iter_rule_lines
from .ledger import LedgerWriter, read_ledger_tail
from .lock import SyncLock
from .models.settings import ChangeEvent
from .paths import VaultPaths
from .settings import SettingsValidationError, apply_change
from .store import SyncStore

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="lmsnotes",
    help="lmsnotes - sync Canvas assignments into Obsidian notes",
    add_completion=False,
)

console = Console()

VAULT_OPTION_HELP = "Path to the Obsidian vault (default: .lmsnotes/config.toml, LMSNOTES_VAULT or ./vault)"

SETTING_FIELDS = ("access_token", "canvas_url", "rubric_mode", "courses_text")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging"),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load(vault_path: str | None) -> tuple[LmsNotesConfig, VaultPaths, SyncStore]:
    config = LmsNotesConfig.from_env(cli_vault_path=vault_path)
    paths = VaultPaths.from_config(config)
    return config, paths, SyncStore(paths.data_file)


def _build_reconciler(vault_path: str | None) -> AssignmentReconciler:
    config, paths, store = _load(vault_path)
    settings, cache = store.load()

    try:
        client = CanvasClient(access_token=settings.access_token, canvas_url=settings.canvas_url)
        tz = config.tzinfo()
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    return AssignmentReconciler(
        client=client,
        storage=VaultStorage(paths.root),
        store=store,
        settings=settings,
        cache=cache,
        ledger_writer=LedgerWriter(paths.ledger_file),
        tz=tz,
        run_lock=SyncLock(paths.lock_file),
    )


@app.command()
def sync(
    vault_path: str = typer.Option(None, "--vault", "-v", help=VAULT_OPTION_HELP),
):
    """Sync assignments for every configured course.
    
    New assignments get a note; changed ones get their due and assigned
    dates updated in place; unchanged ones are skipped.
    """
    reconciler = _build_reconciler(vault_path)

    if not reconciler.settings.courses:
        console.print("[yellow]No courses configured. Use 'lmsnotes courses set' first.[/yellow]")
        raise typer.Exit(code=1)

    console.print("[dim]Syncing assignments...[/dim]")
    start = time.perf_counter()
    try:
        summary = reconciler.sync_all()
    except SyncInProgressError as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(code=1)
    except SyncError as e:
        logger.error(f"Sync failed: {e}")
        console.print("[red]Failed to sync assignments! Check your access token.[/red]")
        raise typer.Exit(code=1)
    except Exception as e:
        logger.exception(f"Sync failed: {e}")
        console.print("[red]Failed to sync assignments! Check your access token.[/red]")
        raise typer.Exit(code=1)

    elapsed_ms = round((time.perf_counter() - start) * 1000)

    table = Table(title="Sync results")
    table.add_column("Course", style="cyan")
    table.add_column("Assignments", justify="right")
    table.add_column("Created", style="green", justify="right")
    table.add_column("Updated", style="yellow", justify="right")
    table.add_column("Recreated", style="magenta", justify="right")
    table.add_column("Unchanged", style="dim", justify="right")
    for result in summary.courses:
        table.add_row(
            str(result.course_id),
            str(result.assignments_count),
            str(result.created),
            str(result.updated),
            str(result.recreated),
            str(result.skipped),
        )
    console.print(table)
    console.print(f"[bold green]Assignments synced in {elapsed_ms}ms[/bold green]")


@app.command()
def refresh(
    course_id: int = typer.Argument(..., help="Canvas course id"),
    assignment_id: int = typer.Argument(..., help="Canvas assignment id"),
    vault_path: str = typer.Option(None, "--vault", "-v", help=VAULT_OPTION_HELP),
):
    """Re-fetch a single assignment and reconcile its note."""
    reconciler = _build_reconciler(vault_path)

    course = next((c for c in reconciler.settings.courses if c.id == course_id), None)
    if course is None:
        console.print(f"[red]Error: Course {course_id} is not configured[/red]")
        raise typer.Exit(code=1)

    try:
        action = reconciler.refresh_assignment(course, assignment_id)
    except SyncInProgressError as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(code=1)
    except SyncError as e:
        logger.error(f"Refresh failed: {e}")
        console.print("[red]Failed to refresh assignment! Check your access token.[/red]")
        raise typer.Exit(code=1)
    except Exception as e:
        logger.exception(f"Refresh failed: {e}")
        console.print("[red]Failed to refresh assignment! Check your access token.[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]Assignment {assignment_id}:[/green] {action.value}")


config_app = typer.Typer(help="Settings commands")
app.add_typer(config_app, name="config")


@config_app.command("show")
def config_show(
    vault_path: str = typer.Option(None, "--vault", "-v", help=VAULT_OPTION_HELP),
):
    """Show the stored settings (token masked)."""
    _, paths, store = _load(vault_path)
    settings, _ = store.load()

    token = settings.access_token
    masked = f"{token[:4]}...{token[-4:]}" if len(token) > 8 else ("****" if token else "-")

    console.print(f"[dim]Data file:[/dim]    {paths.data_file}")
    console.print(f"[dim]Access token:[/dim] {masked}")
    console.print(f"[dim]Canvas URL:[/dim]   {settings.canvas_url or '-'}")
    console.print(f"[dim]Rubric mode:[/dim]  {settings.rubric_mode}")
    console.print(f"[dim]Courses:[/dim]      {len(settings.courses)}")


@config_app.command("set")
def config_set(
    field: str = typer.Argument(..., help=f"One of: {', '.join(SETTING_FIELDS)}"),
    value: str = typer.Argument(..., help="New value"),
    vault_path: str = typer.Option(None, "--vault", "-v", help=VAULT_OPTION_HELP),
):
    """Change one setting."""
    if field not in SETTING_FIELDS:
        console.print(f"[red]Error: Unknown setting '{field}'. Use one of: {', '.join(SETTING_FIELDS)}[/red]")
        raise typer.Exit(code=1)

    _, _, store = _load(vault_path)
    settings, cache = store.load()

    try:
        settings = apply_change(settings, ChangeEvent(field=field, value=value))
    except SettingsValidationError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    store.save(settings, cache)
    console.print(f"[green]+[/green] Updated {field}")


courses_app = typer.Typer(help="Course rule commands")
app.add_typer(courses_app, name="courses")


@courses_app.command("set")
def courses_set(
    file: Path = typer.Option(..., "--file", "-f", help="Text file with one course rule per line"),
    vault_path: str = typer.Option(None, "--vault", "-v", help=VAULT_OPTION_HELP),
):
    """Replace the course rules from a file.
    
    Each line looks like: id = 123; folder = School/Math; tags = math
    Lines starting with # are ignored. One bad line rejects the whole file.
    """
    if not file.exists():
        console.print(f"[red]Error: File not found: {file}[/red]")
        raise typer.Exit(code=1)

    _, _, store = _load(vault_path)
    settings, cache = store.load()

    try:
        settings = apply_change(
            settings,
            ChangeEvent(field="courses_text", value=file.read_text(encoding="utf-8")),
        )
    except SettingsValidationError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    store.save(settings, cache)
    console.print(f"[green]+[/green] Saved {len(settings.courses)} course(s)")


@courses_app.command("show")
def courses_show(
    vault_path: str = typer.Option(None, "--vault", "-v", help=VAULT_OPTION_HELP),
):
    """List the configured courses."""
    _, _, store = _load(vault_path)
    settings, _ = store.load()

    if not settings.courses:
        console.print("[dim]No courses configured[/dim]")
        return

    table = Table(title=f"{len(settings.courses)} Course(s)")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Folder")
    table.add_column("Tags", style="magenta")
    table.add_column("Extra frontmatter", style="dim")
    for course in settings.courses:
        table.add_row(
            str(course.id),
            course.folder or "/",
            ", ".join(course.extra_tags),
            ", ".join(f"{k}: {v}" for k, v in course.extra_frontmatter),
        )
    console.print(table)
    console.print(f"[dim]{len(iter_rule_lines(settings.courses_text))} rule line(s) in settings[/dim]")


cache_app = typer.Typer(help="Known-assignment cache commands")
app.add_typer(cache_app, name="cache")


@cache_app.command("show")
def cache_show(
    vault_path: str = typer.Option(None, "--vault", "-v", help=VAULT_OPTION_HELP),
):
    """Show cached assignments."""
    _, _, store = _load(vault_path)
    _, cache = store.load()

    console.print(f"{len(cache)} assignments cached.")
    if not cache:
        return

    table = Table()
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Course", style="yellow")
    table.add_column("Name")
    table.add_column("Last updated", style="dim")
    table.add_column("File", style="dim")
    for assignment_id, record in sorted(cache.items()):
        table.add_row(str(assignment_id), str(record.course_id), record.name, record.last_updated, record.file_path)
    console.print(table)


@cache_app.command("clear")
def cache_clear(
    vault_path: str = typer.Option(None, "--vault", "-v", help=VAULT_OPTION_HELP),
):
    """Forget every cached assignment. Existing notes are kept."""
    _, _, store = _load(vault_path)
    settings, _ = store.load()
    store.save(settings, {})
    console.print("0 assignments cached.")


ledger_app = typer.Typer(help="Ledger commands")
app.add_typer(ledger_app, name="ledger")


@ledger_app.command("tail")
def ledger_tail(
    n: int = typer.Option(20, "--n", help="Number of recent events to display"),
    full: bool = typer.Option(False, "--full", help="Show full payloads with JSON pretty-print"),
    vault_path: str = typer.Option(None, "--vault", "-v", help=VAULT_OPTION_HELP),
):
    """Display the last N events from the sync ledger."""
    _, paths, _ = _load(vault_path)
    events = read_ledger_tail(paths.ledger_file, n=n)

    if not events:
        console.print("[dim]No events in ledger[/dim]")
        return

    if full:
        console.print(f"[bold]Last {len(events)} Ledger Event(s)[/bold]\n")
        for i, event in enumerate(events, 1):
            console.print(f"[cyan]Event {i}/{len(events)}[/cyan]")
            console.print(f"  [dim]Run ID:[/dim]      {event.run_id}")
            console.print(f"  [dim]Timestamp:[/dim]   {event.ts.strftime('%Y-%m-%d %H:%M:%S')} UTC")
            console.print(f"  [dim]Event Type:[/dim]  [magenta]{event.event_type}[/magenta]")
            console.print(f"  [dim]Course ID:[/dim]   {event.course_id or '-'}")
            console.print("  [dim]Payload:[/dim]")
            for line in json.dumps(event.payload, indent=2).split("\n"):
                console.print(f"    {line}")
            console.print()
        return

    table = Table(title=f"Last {len(events)} Ledger Event(s)")
    table.add_column("Timestamp (UTC)", style="cyan", no_wrap=True)
    table.add_column("Event Type", style="magenta")
    table.add_column("Course", style="yellow")
    table.add_column("Payload", style="dim")

    for event in events:
        payload_str = str(event.payload)
        if len(payload_str) > 60:
            payload_str = payload_str[:57] + "..."
        table.add_row(
            event.ts.strftime("%Y-%m-%d %H:%M:%S"),
            event.event_type,
            str(event.course_id) if event.course_id is not None else "-",
            payload_str,
        )

    console.print(table)


@app.command()
def version():
    """Show lmsnotes version."""
    from . import __version__
    console.print(f"lmsnotes v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
